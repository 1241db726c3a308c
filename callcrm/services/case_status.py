# callcrm/services/case_status.py
import logging
from typing import Dict, FrozenSet, List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from callcrm.crud import case as crud_case
from callcrm.models import Case, CaseStatus, UserRole
from callcrm.services.audit import AuditService
from callcrm.services.clock import Clock, system_clock
from callcrm.services.exceptions import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)

# Every state may move to every state, itself and re-opening from `cerrado` included.
ALLOWED_TRANSITIONS: Dict[CaseStatus, FrozenSet[CaseStatus]] = {
    status: frozenset(CaseStatus) for status in CaseStatus
}


def can_transition(current: CaseStatus | str, new: CaseStatus | str) -> bool:
    return CaseStatus(new) in ALLOWED_TRANSITIONS[CaseStatus(current)]


class CaseStatusMachine:
    """
        Case pipeline: nuevo, pendiente_llamada, contactado, no_contesta,
        seguimiento, cerrado.

        `apply_transition` is the single place a case status changes; it writes
        the new status and the StatusHistory row but leaves the commit to the
        caller so it can be composed (note auto-closure). `set_status` is the
        standalone operation: load, transition, commit, audit.
    """

    def __init__(self, db: AsyncSession, clock: Clock = system_clock):
        self.db = db
        self.clock = clock
        self.audit = AuditService(db, clock)

    async def apply_transition(self, case: Case, new_status: CaseStatus | str, actor_id: UUID) -> str:
        """Set the case status and append history. Returns the previous status."""
        new_status = CaseStatus(new_status)
        previous_status = case.status
        if not can_transition(previous_status, new_status):
            raise BadRequestError(f"Transition {previous_status} -> {new_status.value} is not allowed")

        now = self.clock.now()
        case.status = new_status.value
        case.updated_at = now
        await self.db.flush()

        await crud_case.add_status_history(
            self.db,
            case_id=case.case_id,
            previous_status=previous_status,
            new_status=new_status.value,
            user_id=actor_id,
            now=now,
        )
        await self.db.flush()
        return previous_status

    async def set_status(self, case_id: UUID, new_status: CaseStatus | str, actor_id: UUID) -> Case:
        """
        Change a case's status. Setting the current status again is allowed and
        still recorded in history.

        Raises:
            NotFoundError: case does not exist.
        """
        case = await crud_case.get_case(self.db, case_id)
        if not case:
            raise NotFoundError("Case not found")

        try:
            previous_status = await self.apply_transition(case, new_status, actor_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        new_value = CaseStatus(new_status).value
        logger.info("Case %s: %s -> %s by %s", case_id, previous_status, new_value, actor_id)

        await self.audit.log(actor_id, "UPDATE_STATUS", "case", case_id, {
            "previousStatus": previous_status,
            "newStatus": new_value,
        })

        return await crud_case.get_case_detail(self.db, case_id)

    async def list_cases(self, actor_id: UUID, role: str) -> List[Case]:
        # Agents only see cases whose lead is assigned to them
        if role == UserRole.ASESORA.value:
            return await crud_case.list_cases(self.db, assigned_user_id=actor_id)
        return await crud_case.list_cases(self.db)

    async def get_case(self, case_id: UUID) -> Case:
        case = await crud_case.get_case_detail(self.db, case_id)
        if not case:
            raise NotFoundError("Case not found")
        return case
