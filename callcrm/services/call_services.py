# callcrm/services/call_services.py
import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from callcrm.crud import call_log as crud_call
from callcrm.crud import case as crud_case
from callcrm.models import CallLog
from callcrm.services.audit import AuditService
from callcrm.services.clock import Clock, system_clock
from callcrm.services.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class CallServices:

    def __init__(self, db: AsyncSession, clock: Clock = system_clock):
        self.db = db
        self.clock = clock
        self.audit = AuditService(db, clock)

    async def create_call(
        self,
        case_id: UUID,
        date: datetime,
        duration: int,
        result: str,
        actor_id: UUID,
        observations: Optional[str] = None,
    ) -> CallLog:
        """Log a call made on a case. Call logs are never edited afterwards."""
        if not await crud_case.get_case(self.db, case_id):
            raise NotFoundError("Case not found")

        try:
            call = await crud_call.create_call(
                self.db,
                case_id=case_id,
                user_id=actor_id,
                date=date,
                duration=duration,
                result=result,
                observations=observations,
                now=self.clock.now(),
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        call_id = call.call_id
        await self.audit.log(actor_id, "CREATE", "call_log", call_id, {
            "caseId": case_id,
            "result": result,
        })

        return await crud_call.get_call(self.db, call_id)

    async def list_for_case(self, case_id: UUID) -> List[CallLog]:
        if not await crud_case.get_case(self.db, case_id):
            raise NotFoundError("Case not found")
        return await crud_call.list_calls_for_case(self.db, case_id)
