from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from uuid import UUID
import logging
import traceback

from callcrm.db.session import get_db
from callcrm.db.redis_client import get_redis
from callcrm.routers.deps import get_current_actor, get_intake_caller, require_roles
from callcrm.schemas.lead import LeadCreateRequest, LeadDetail, LeadOut
from callcrm.schemas.manual_load import BulkLoadRequest, BulkLoadResponse, ManualLoadItem, ManualLoadResponse
from callcrm.schemas.user import Actor, AgentDistributionItem
from callcrm.services.exceptions import ConflictError
from callcrm.services.lead_services import LeadServices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/leads", tags=["Leads"])


@router.post(
    "",
    response_model=LeadOut,
    status_code=201,
    summary="Create a lead",
    description="Entry point for integrations (API key) and users (bearer). Deduplicates by externalId and phone, then auto-assigns an agent."
)
async def create_lead(
    request: LeadCreateRequest,
    caller: Optional[Actor] = Depends(get_intake_caller),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    try:
        return await LeadServices(db, redis).create_lead(
            name=request.name,
            phone=request.phone,
            email=request.email,
            source=request.source,
            external_id=request.external_id,
        )
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Error in create_lead: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("", response_model=List[LeadOut], summary="List leads (agents see their own)")
async def list_leads(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await LeadServices(db).list_leads(actor.user_id, actor.role)
    except Exception as e:
        logger.error("Error in list_leads: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


# Must be declared before /{lead_id}
@router.get("/distribution", response_model=List[AgentDistributionItem], summary="Lead load per agent")
async def get_distribution(
    actor: Actor = Depends(require_roles("admin")),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await LeadServices(db).distribution()
    except Exception as e:
        logger.error("Error in get_distribution: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.post(
    "/manual",
    response_model=ManualLoadResponse,
    status_code=201,
    summary="Load a lead by hand",
    description="Creates the lead together with its client, case and initial status history."
)
async def create_manual_lead(
    request: ManualLoadItem,
    actor: Actor = Depends(require_roles("admin", "supervisor")),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    try:
        return await LeadServices(db, redis).create_manual(actor_id=actor.user_id, **request.model_dump())
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Error in create_manual_lead: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.post("/manual/bulk", response_model=BulkLoadResponse, summary="Load many leads by hand (CSV import)")
async def create_bulk_leads(
    request: BulkLoadRequest,
    actor: Actor = Depends(require_roles("admin", "supervisor")),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    try:
        items = [item.model_dump() for item in request.items]
        return await LeadServices(db, redis).create_bulk(items, actor.user_id)
    except Exception as e:
        logger.error("Error in create_bulk_leads: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/{lead_id}", response_model=LeadDetail, summary="Lead with its cases")
async def get_lead(
    lead_id: UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await LeadServices(db).get_lead(lead_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Error in get_lead: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")
