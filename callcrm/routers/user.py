from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from uuid import UUID
import logging
import traceback

from callcrm.db.session import get_db
from callcrm.routers.deps import require_roles
from callcrm.schemas.user import Actor, UserActiveUpdate, UserOut
from callcrm.services.user_services import UserServices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.get("", response_model=List[UserOut])
async def list_users(
    actor: Actor = Depends(require_roles("admin", "supervisor")),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await UserServices(db).list_users()
    except Exception as e:
        logger.error("Error in list_users: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.patch(
    "/{user_id}/active",
    response_model=UserOut,
    summary="Activate or deactivate a user",
    description="Inactive agents stop receiving new leads."
)
async def set_user_active(
    user_id: UUID,
    request: UserActiveUpdate,
    actor: Actor = Depends(require_roles("admin")),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await UserServices(db).set_active(user_id, request.is_active, actor.user_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Error in set_user_active: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")
