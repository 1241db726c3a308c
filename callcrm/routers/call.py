from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import traceback

from callcrm.db.session import get_db
from callcrm.routers.deps import get_current_actor
from callcrm.schemas.call_log import CallCreate
from callcrm.schemas.case import CallLogOut
from callcrm.schemas.user import Actor
from callcrm.services.call_services import CallServices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/calls", tags=["Calls"])


@router.post("", response_model=CallLogOut, status_code=201, summary="Log a call on a case")
async def create_call(
    request: CallCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await CallServices(db).create_call(actor_id=actor.user_id, **request.model_dump())
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Error in create_call: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")
