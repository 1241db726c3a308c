# callcrm/services/case_notes.py
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from callcrm.crud import case as crud_case
from callcrm.crud import case_note as crud_note
from callcrm.crud import user as crud_user
from callcrm.models import CaseNote, CaseStatus, ManagementType
from callcrm.services.audit import AuditService
from callcrm.services.case_status import CaseStatusMachine
from callcrm.services.clock import Clock, system_clock
from callcrm.services.exceptions import BadRequestError, ForbiddenError, NotFoundError
from callcrm.services.note_permissions import annul_denial_reason, edit_denial_reason

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("content", "management_type", "next_follow_up_date")


def _management_type(value: ManagementType | str) -> ManagementType:
    try:
        return ManagementType(value)
    except ValueError:
        raise BadRequestError(f"Unknown management type {value!r}")


def _require_follow_up(management_type: ManagementType, next_follow_up_date: Optional[datetime]) -> None:
    if management_type == ManagementType.REAGENDAR and not next_follow_up_date:
        raise BadRequestError('Management type "reagendar" requires a next follow-up date')


class CaseNoteService:
    """
        Typed notes on a case.

        - create: snapshots the author's role and the case status; a
          `cierre_de_caso` note closes the case through CaseStatusMachine in the
          same transaction; every note bumps the case's `updated_at`.
        - update: partial, permission-checked (see note_permissions), refused on
          annulled notes.
        - annul: terminal; agents never annul.
    """

    def __init__(self, db: AsyncSession, clock: Clock = system_clock):
        self.db = db
        self.clock = clock
        self.audit = AuditService(db, clock)
        self.status_machine = CaseStatusMachine(db, clock)

    async def create(
        self,
        case_id: UUID,
        management_type: ManagementType | str,
        content: str,
        actor_id: UUID,
        next_follow_up_date: Optional[datetime] = None,
    ) -> CaseNote:
        case = await crud_case.get_case(self.db, case_id)
        if not case:
            raise NotFoundError("Case not found")

        management_type = _management_type(management_type)
        _require_follow_up(management_type, next_follow_up_date)

        actor = await crud_user.get_user(self.db, actor_id)
        if not actor:
            raise NotFoundError("User not found")

        try:
            note = await crud_note.create_note(
                self.db,
                case_id=case_id,
                user_id=actor_id,
                role=actor.role,
                management_type=management_type.value,
                content=content,
                status_snapshot=case.status,
                next_follow_up_date=next_follow_up_date,
                now=self.clock.now(),
            )

            closed = False
            if management_type == ManagementType.CIERRE_DE_CASO and case.status != CaseStatus.CERRADO.value:
                await self.status_machine.apply_transition(case, CaseStatus.CERRADO, actor_id)
                closed = True

            # Last-touched timestamp, whether or not the status moved
            case.updated_at = self.clock.now()
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        note_id = note.note_id
        if closed:
            logger.info("Case %s closed by note %s", case_id, note_id)

        await self.audit.log(actor_id, "CREATE_NOTE", "case", case_id, {
            "managementType": management_type.value,
            "noteId": note_id,
            "closedCase": closed,
        })

        return await crud_note.get_note(self.db, note_id)

    async def list_for_case(self, case_id: UUID) -> List[CaseNote]:
        if not await crud_case.get_case(self.db, case_id):
            raise NotFoundError("Case not found")
        return await crud_note.list_notes_for_case(self.db, case_id)

    async def update(
        self,
        note_id: UUID,
        changes: Dict[str, Any],
        actor_id: UUID,
        actor_role: str,
    ) -> CaseNote:
        """
        Apply only the keys present in `changes` (content, management_type,
        next_follow_up_date); missing keys are left as they are.

        Raises:
            NotFoundError: note does not exist.
            BadRequestError: note annulled, or the resulting note would be a
                `reagendar` without a follow-up date.
            ForbiddenError: role / ownership / edit window.
        """
        note = await crud_note.get_note(self.db, note_id)
        if not note:
            raise NotFoundError("Note not found")
        if note.annulled_at:
            raise BadRequestError("Annulled notes cannot be edited")

        now = self.clock.now()
        reason = edit_denial_reason(actor_role, note, actor_id, now)
        if reason:
            raise ForbiddenError(reason)

        changes = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}
        if "content" in changes and not changes["content"]:
            raise BadRequestError("Note content cannot be empty")
        if "management_type" in changes:
            changes["management_type"] = _management_type(changes["management_type"])

        final_type = changes.get("management_type") or ManagementType(note.management_type)
        final_follow_up = changes.get("next_follow_up_date", note.next_follow_up_date)
        _require_follow_up(final_type, final_follow_up)

        try:
            if "content" in changes:
                note.content = changes["content"]
            if "management_type" in changes:
                note.management_type = changes["management_type"].value
            if "next_follow_up_date" in changes:
                note.next_follow_up_date = changes["next_follow_up_date"]
            note.updated_at = now
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.audit.log(actor_id, "UPDATE_NOTE", "case", note.case_id, {
            "noteId": note_id,
            "fields": sorted(changes),
        })

        return await crud_note.get_note(self.db, note_id)

    async def annul(self, note_id: UUID, actor_id: UUID, actor_role: str) -> CaseNote:
        # Agents are refused before the note is even looked up
        reason = annul_denial_reason(actor_role)
        if reason:
            raise ForbiddenError(reason)

        note = await crud_note.get_note(self.db, note_id)
        if not note:
            raise NotFoundError("Note not found")
        if note.annulled_at:
            raise BadRequestError("Note is already annulled")

        reason = annul_denial_reason(actor_role, note)
        if reason:
            raise ForbiddenError(reason)

        case_id = note.case_id
        try:
            note.annulled_at = self.clock.now()
            note.updated_at = note.annulled_at
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Note %s annulled by %s", note_id, actor_id)
        await self.audit.log(actor_id, "ANNUL_NOTE", "case", case_id, {"noteId": note_id})

        return await crud_note.get_note(self.db, note_id)
