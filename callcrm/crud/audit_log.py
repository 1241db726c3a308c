# callcrm/crud/audit_log.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional
from uuid import UUID, uuid4
from datetime import datetime

from callcrm.models import AuditLog


async def create_audit_log(
    db: AsyncSession,
    user_id: Optional[UUID],
    action: str,
    entity: str,
    entity_id: Optional[str],
    details: Optional[str],
    now: datetime,
) -> AuditLog:
    entry = AuditLog(
        audit_id=uuid4(),
        user_id=user_id,
        action=action,
        entity=entity,
        entity_id=entity_id,
        details=details,
        created_at=now,
        updated_at=now,
    )
    db.add(entry)
    return entry


async def list_audit_logs(
    db: AsyncSession,
    entity: Optional[str] = None,
    user_id: Optional[UUID] = None,
    limit: int = 500,
) -> List[AuditLog]:
    stmt = select(AuditLog)
    if entity:
        stmt = stmt.where(AuditLog.entity == entity)
    if user_id:
        stmt = stmt.where(AuditLog.user_id == user_id)
    result = await db.execute(stmt.order_by(AuditLog.created_at.desc()).limit(limit))
    return result.scalars().all()
