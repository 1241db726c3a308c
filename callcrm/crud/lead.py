# callcrm/crud/lead.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload
from typing import Dict, List, Optional
from uuid import UUID, uuid4
from datetime import datetime

from callcrm.models import Lead, Case, CaseStatus


# --- Duplicate checks ---
async def get_lead_by_external_id(db: AsyncSession, external_id: str) -> Optional[Lead]:
    result = await db.execute(select(Lead).where(Lead.external_id == external_id))
    return result.scalar_one_or_none()


async def get_lead_by_phone(db: AsyncSession, phone: str) -> Optional[Lead]:
    result = await db.execute(select(Lead).where(Lead.phone == phone).limit(1))
    return result.scalars().first()


# --- Insert Lead ---
async def create_lead(
    db: AsyncSession,
    now: datetime,
    name: str,
    phone: str,
    email: Optional[str] = None,
    source_id: Optional[UUID] = None,
    external_id: Optional[str] = None,
    assigned_user_id: Optional[UUID] = None,
    created_manually: bool = False,
    observations: Optional[str] = None,
) -> Lead:
    new_lead = Lead(
        lead_id=uuid4(),
        name=name,
        phone=phone,
        email=email,
        source_id=source_id,
        external_id=external_id,
        status=CaseStatus.NUEVO.value,
        assigned_user_id=assigned_user_id,
        assigned_at=now if assigned_user_id else None,
        created_manually=created_manually,
        observations=observations,
        created_at=now,
        updated_at=now,
    )
    db.add(new_lead)
    await db.flush()
    return new_lead


# --- Fetch Lead by ID ---
async def get_lead_by_id(db: AsyncSession, lead_id: UUID) -> Optional[Lead]:
    result = await db.execute(select(Lead).where(Lead.lead_id == lead_id))
    return result.scalar_one_or_none()


async def get_lead_detail(db: AsyncSession, lead_id: UUID) -> Optional[Lead]:
    """Lead with assigned agent, source, clients and cases (history + calls) loaded."""
    result = await db.execute(
        select(Lead)
        .options(
            selectinload(Lead.assigned_user),
            selectinload(Lead.source),
            selectinload(Lead.clients),
            selectinload(Lead.cases).selectinload(Case.history),
            selectinload(Lead.cases).selectinload(Case.calls),
        )
        .where(Lead.lead_id == lead_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_leads(db: AsyncSession, assigned_user_id: Optional[UUID] = None) -> List[Lead]:
    stmt = (
        select(Lead)
        .options(selectinload(Lead.assigned_user), selectinload(Lead.source), selectinload(Lead.clients))
        .order_by(Lead.created_at.desc())
    )
    if assigned_user_id:
        stmt = stmt.where(Lead.assigned_user_id == assigned_user_id)
    result = await db.execute(stmt)
    return result.scalars().all()


# --- Update Lead Status ---
async def update_lead_status(db: AsyncSession, lead: Lead, new_status: str, now: datetime) -> Lead:
    lead.status = new_status
    lead.updated_at = now
    return lead


# --- Workload ---
async def count_active_leads(db: AsyncSession, agent_id: UUID) -> int:
    """Leads assigned to the agent that are not closed."""
    result = await db.execute(
        select(func.count(Lead.lead_id)).where(
            Lead.assigned_user_id == agent_id,
            Lead.status != CaseStatus.CERRADO.value,
        )
    )
    return result.scalar() or 0


async def count_leads(db: AsyncSession, agent_id: UUID) -> int:
    result = await db.execute(
        select(func.count(Lead.lead_id)).where(Lead.assigned_user_id == agent_id)
    )
    return result.scalar() or 0


async def get_last_assigned_at(db: AsyncSession, agent_id: UUID) -> Optional[datetime]:
    result = await db.execute(
        select(func.max(Lead.assigned_at)).where(Lead.assigned_user_id == agent_id)
    )
    return result.scalar()



# --- Dashboard ---
async def count_leads_since(db: AsyncSession, since: datetime, agent_id: Optional[UUID] = None) -> int:
    stmt = select(func.count(Lead.lead_id)).where(Lead.created_at >= since)
    if agent_id:
        stmt = stmt.where(Lead.assigned_user_id == agent_id)
    result = await db.execute(stmt)
    return result.scalar() or 0


async def count_leads_by_status_since(db: AsyncSession, since: datetime) -> Dict[str, int]:
    result = await db.execute(
        select(Lead.status, func.count(Lead.lead_id))
        .where(Lead.created_at >= since)
        .group_by(Lead.status)
    )
    return {status: count for status, count in result.all()}
