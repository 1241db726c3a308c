# callcrm/crud/user.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional
from uuid import UUID

from callcrm.models import User, UserRole


async def get_user(db: AsyncSession, user_id: UUID) -> Optional[User]:
    result = await db.execute(select(User).where(User.user_id == user_id))
    return result.scalar_one_or_none()


async def list_users(db: AsyncSession) -> List[User]:
    result = await db.execute(select(User).order_by(User.created_at.asc()))
    return result.scalars().all()


async def list_agents(db: AsyncSession, only_active: bool = False) -> List[User]:
    """Users with role `asesora`; `only_active` keeps the assignment-eligible ones."""
    stmt = select(User).where(User.role == UserRole.ASESORA.value)
    if only_active:
        stmt = stmt.where(User.is_active.is_(True))
    result = await db.execute(stmt.order_by(User.created_at.asc()))
    return result.scalars().all()
