# callcrm/crud/case.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload
from typing import List, Optional
from uuid import UUID, uuid4
from datetime import datetime

from callcrm.models import Case, Client, Lead, StatusHistory, CaseStatus


async def create_case(db: AsyncSession, client: Client, now: datetime) -> Case:
    new_case = Case(
        case_id=uuid4(),
        client_id=client.client_id,
        lead_id=client.lead_id,
        status=CaseStatus.NUEVO.value,
        created_at=now,
        updated_at=now,
    )
    db.add(new_case)
    await db.flush()
    return new_case


async def get_case(db: AsyncSession, case_id: UUID) -> Optional[Case]:
    result = await db.execute(select(Case).where(Case.case_id == case_id))
    return result.scalar_one_or_none()


async def get_case_detail(db: AsyncSession, case_id: UUID) -> Optional[Case]:
    """Case with client, lead (and its agent), history and calls loaded."""
    result = await db.execute(
        select(Case)
        .options(
            selectinload(Case.client),
            selectinload(Case.lead).selectinload(Lead.assigned_user),
            selectinload(Case.history),
            selectinload(Case.calls),
        )
        .where(Case.case_id == case_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_cases(db: AsyncSession, assigned_user_id: Optional[UUID] = None) -> List[Case]:
    stmt = (
        select(Case)
        .options(
            selectinload(Case.client),
            selectinload(Case.lead).selectinload(Lead.assigned_user),
            selectinload(Case.history),
            selectinload(Case.calls),
        )
        .order_by(Case.updated_at.desc())
    )
    if assigned_user_id:
        stmt = stmt.join(Lead, Lead.lead_id == Case.lead_id).where(Lead.assigned_user_id == assigned_user_id)
    result = await db.execute(stmt)
    return result.scalars().all()


async def add_status_history(
    db: AsyncSession,
    case_id: UUID,
    previous_status: Optional[str],
    new_status: str,
    user_id: Optional[UUID],
    now: datetime,
) -> StatusHistory:
    history = StatusHistory(
        history_id=uuid4(),
        case_id=case_id,
        previous_status=previous_status,
        new_status=new_status,
        user_id=user_id,
        created_at=now,
        updated_at=now,
    )
    db.add(history)
    return history


# --- Dashboard ---
async def count_cases_worked_since(db: AsyncSession, agent_id: UUID, since: datetime) -> int:
    """Cases of the agent's leads touched (status change or note) since the given time."""
    result = await db.execute(
        select(func.count(Case.case_id))
        .join(Lead, Lead.lead_id == Case.lead_id)
        .where(Lead.assigned_user_id == agent_id, Case.updated_at >= since)
    )
    return result.scalar() or 0


async def count_open_cases(db: AsyncSession, agent_id: UUID) -> int:
    result = await db.execute(
        select(func.count(Case.case_id))
        .join(Lead, Lead.lead_id == Case.lead_id)
        .where(Lead.assigned_user_id == agent_id, Case.status != CaseStatus.CERRADO.value)
    )
    return result.scalar() or 0
