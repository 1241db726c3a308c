from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from uuid import UUID
import logging
import traceback

from callcrm.db.session import get_db
from callcrm.routers.deps import require_roles
from callcrm.schemas.audit import AuditLogOut
from callcrm.schemas.user import Actor
from callcrm.services.audit import AuditService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/audit", tags=["Audit"])


@router.get("", response_model=List[AuditLogOut], summary="Latest audit records")
async def list_audit_logs(
    entity: Optional[str] = Query(None, description="lead, client, case, call_log, user"),
    user_id: Optional[UUID] = Query(None),
    limit: int = Query(500, ge=1, le=500),
    actor: Actor = Depends(require_roles("admin")),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await AuditService(db).list(entity=entity, user_id=user_id, limit=limit)
    except Exception as e:
        logger.error("Error in list_audit_logs: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")
