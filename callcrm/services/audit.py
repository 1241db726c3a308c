# callcrm/services/audit.py
import json
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from callcrm.crud import audit_log as crud_audit
from callcrm.models import AuditLog
from callcrm.services.clock import Clock, system_clock

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"


class AuditService:
    """
    Append-only audit sink.

    Every mutating service calls ``log`` after its own commit, so the audit
    row is written in a separate transaction. A failed audit write is rolled
    back and logged; it never undoes the operation being audited.
    """

    def __init__(self, db: AsyncSession, clock: Clock = system_clock):
        self.db = db
        self.clock = clock

    async def log(
        self,
        actor_id: Optional[UUID | str],
        action: str,
        entity_type: str,
        entity_id: Optional[UUID | str],
        details: Optional[Dict[str, Any]] = None,
    ) -> bool:
        user_id = None
        if actor_id and actor_id != SYSTEM_ACTOR:
            user_id = actor_id if isinstance(actor_id, UUID) else UUID(str(actor_id))

        try:
            await crud_audit.create_audit_log(
                self.db,
                user_id=user_id,
                action=action,
                entity=entity_type,
                entity_id=str(entity_id) if entity_id else None,
                details=json.dumps(details, default=str) if details else None,
                now=self.clock.now(),
            )
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Audit write failed: %s %s %s", action, entity_type, entity_id)
            return False
        return True

    async def list(
        self,
        entity: Optional[str] = None,
        user_id: Optional[UUID] = None,
        limit: int = 500,
    ) -> List[AuditLog]:
        return await crud_audit.list_audit_logs(self.db, entity=entity, user_id=user_id, limit=limit)
