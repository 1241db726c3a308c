from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from uuid import UUID
import logging
import traceback

from callcrm.db.session import get_db
from callcrm.routers.deps import get_current_actor
from callcrm.schemas.client import ClientOut, ConversionResponse
from callcrm.schemas.user import Actor
from callcrm.services.conversion_services import ConversionService
from callcrm.services.exceptions import ConflictError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/clients", tags=["Clients"])


@router.post(
    "/convert/{lead_id}",
    response_model=ConversionResponse,
    status_code=201,
    summary="Convert a lead into a client",
    description="Creates the client, its case and the initial status history, and marks the lead as contactado."
)
async def convert_lead(
    lead_id: UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await ConversionService(db).convert_lead_to_client(lead_id, actor.user_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error("Error in convert_lead: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("", response_model=List[ClientOut])
async def list_clients(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await ConversionService(db).list_clients()
    except Exception as e:
        logger.error("Error in list_clients: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/{client_id}", response_model=ClientOut)
async def get_client(
    client_id: UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await ConversionService(db).get_client(client_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Error in get_client: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")
