# callcrm/crud/case_note.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional
from uuid import UUID, uuid4
from datetime import datetime

from callcrm.models import CaseNote


async def create_note(
    db: AsyncSession,
    case_id: UUID,
    user_id: UUID,
    role: str,
    management_type: str,
    content: str,
    status_snapshot: str,
    next_follow_up_date: Optional[datetime],
    now: datetime,
) -> CaseNote:
    note = CaseNote(
        note_id=uuid4(),
        case_id=case_id,
        user_id=user_id,
        role=role,
        management_type=management_type,
        content=content,
        status_snapshot=status_snapshot,
        next_follow_up_date=next_follow_up_date,
        created_at=now,
        updated_at=now,
    )
    db.add(note)
    await db.flush()
    return note


async def get_note(db: AsyncSession, note_id: UUID) -> Optional[CaseNote]:
    result = await db.execute(select(CaseNote).where(CaseNote.note_id == note_id))
    return result.scalar_one_or_none()


async def list_notes_for_case(db: AsyncSession, case_id: UUID) -> List[CaseNote]:
    result = await db.execute(
        select(CaseNote).where(CaseNote.case_id == case_id).order_by(CaseNote.created_at.desc())
    )
    return result.scalars().all()
