# callcrm/crud/lead_sources.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import Optional
from uuid import uuid4

from callcrm.models import LeadSource


async def get_source_by_name(db: AsyncSession, name: str) -> Optional[LeadSource]:
    result = await db.execute(select(LeadSource).where(LeadSource.name == name).limit(1))
    return result.scalars().first()


async def create_source(db: AsyncSession, name: str, description: Optional[str] = None) -> LeadSource:
    source = LeadSource(source_id=uuid4(), name=name, description=description)
    db.add(source)
    await db.flush()
    return source


async def get_or_create_source(db: AsyncSession, name: str) -> LeadSource:
    """Upsert by name. Two concurrent first-time inserts may both create a row."""
    source = await get_source_by_name(db, name)
    if source:
        return source
    return await create_source(db, name)
