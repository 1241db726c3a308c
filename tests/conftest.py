from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import callcrm.models  # noqa: F401
from callcrm.db.base_class import Base
from callcrm.models import AuditLog, Case, CaseStatus, Client, Lead, StatusHistory, User
from callcrm.services.clock import FixedClock

START = datetime(2026, 3, 2, 9, 0, 0)


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with SessionLocal() as session:
        yield session

    await engine.dispose()


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(START)


class FakeRedis:
    """In-memory stand-in for the two redis calls lead intake makes."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self.store.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> None:
        self.store[key] = value


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


# --- Factories ---

async def make_user(
    session: AsyncSession,
    name: str,
    role: str = "asesora",
    is_active: bool = True,
    created_at: datetime = START,
) -> User:
    user = User(
        user_id=uuid4(),
        name=name,
        email=f"{name.lower().replace(' ', '.')}@crm.local",
        role=role,
        is_active=is_active,
        created_at=created_at,
        updated_at=created_at,
    )
    session.add(user)
    await session.commit()
    return user


async def make_lead(
    session: AsyncSession,
    phone: str,
    assigned_user_id: Optional[UUID] = None,
    assigned_at: Optional[datetime] = None,
    status: str = CaseStatus.NUEVO.value,
    name: str = "Lead",
    created_at: datetime = START,
) -> Lead:
    lead = Lead(
        lead_id=uuid4(),
        name=name,
        phone=phone,
        status=status,
        assigned_user_id=assigned_user_id,
        assigned_at=assigned_at or (START if assigned_user_id else None),
        created_at=created_at,
        updated_at=created_at,
    )
    session.add(lead)
    await session.commit()
    return lead


async def make_case(session: AsyncSession, status: str = CaseStatus.NUEVO.value, assigned_user_id: Optional[UUID] = None) -> Case:
    lead = await make_lead(session, phone=f"+34{uuid4().int % 10**9:09d}", assigned_user_id=assigned_user_id)
    client = Client(client_id=uuid4(), name=lead.name, phone=lead.phone, lead_id=lead.lead_id, created_at=START)
    session.add(client)
    await session.flush()
    case = Case(
        case_id=uuid4(),
        client_id=client.client_id,
        lead_id=lead.lead_id,
        status=status,
        created_at=START,
        updated_at=START,
    )
    session.add(case)
    await session.commit()
    return case


async def history_for(session: AsyncSession, case_id: UUID) -> list[StatusHistory]:
    result = await session.execute(select(StatusHistory).where(StatusHistory.case_id == case_id))
    return list(result.scalars().all())


async def audit_actions(session: AsyncSession) -> list[str]:
    result = await session.execute(select(AuditLog.action).order_by(AuditLog.created_at))
    return list(result.scalars().all())
