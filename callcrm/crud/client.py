# callcrm/crud/client.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload
from typing import List, Optional
from uuid import UUID, uuid4
from datetime import datetime

from callcrm.models import Client, Case, Lead


async def get_client_by_lead(db: AsyncSession, lead_id: UUID) -> Optional[Client]:
    result = await db.execute(select(Client).where(Client.lead_id == lead_id).limit(1))
    return result.scalars().first()


async def create_client_from_lead(db: AsyncSession, lead: Lead, now: datetime) -> Client:
    client = Client(
        client_id=uuid4(),
        name=lead.name,
        phone=lead.phone,
        email=lead.email,
        lead_id=lead.lead_id,
        created_at=now,
        updated_at=now,
    )
    db.add(client)
    await db.flush()
    return client


async def get_client_detail(db: AsyncSession, client_id: UUID) -> Optional[Client]:
    result = await db.execute(
        select(Client)
        .options(
            selectinload(Client.lead),
            selectinload(Client.cases).selectinload(Case.history),
            selectinload(Client.cases).selectinload(Case.calls),
        )
        .where(Client.client_id == client_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_clients(db: AsyncSession) -> List[Client]:
    result = await db.execute(
        select(Client)
        .options(
            selectinload(Client.lead),
            selectinload(Client.cases).selectinload(Case.history),
            selectinload(Client.cases).selectinload(Case.calls),
        )
        .order_by(Client.created_at.desc())
    )
    return result.scalars().all()


async def count_clients_since(db: AsyncSession, since: datetime) -> int:
    """Conversions: clients created since the given time."""
    result = await db.execute(select(func.count(Client.client_id)).where(Client.created_at >= since))
    return result.scalar() or 0
