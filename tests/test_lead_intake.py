from __future__ import annotations

import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from callcrm.models import AuditLog, Lead, LeadSource
from callcrm.services.clock import FixedClock
from callcrm.services.exceptions import ConflictError, DuplicateLeadError
from callcrm.services.lead_services import LeadServices, phone_cache_key
from conftest import START, FakeRedis, make_user


async def test_create_lead_assigns_agent_and_stamps_time(db_session: AsyncSession, clock: FixedClock) -> None:
    maria = await make_user(db_session, "Maria")

    lead = await LeadServices(db_session, clock=clock).create_lead(
        name="Carlos Ruiz", phone="612345678", email="carlos@example.com", source="Zapier", external_id="zap-1",
    )

    assert lead.status == "nuevo"
    assert lead.assigned_user_id == maria.user_id
    assert lead.assigned_user.name == "Maria"
    assert lead.assigned_at == START
    assert lead.source.name == "Zapier"
    assert lead.created_manually is False


async def test_create_lead_without_active_agents_stays_unassigned(db_session: AsyncSession, clock: FixedClock) -> None:
    lead = await LeadServices(db_session, clock=clock).create_lead(name="Carlos", phone="612345678")

    assert lead.assigned_user_id is None
    assert lead.assigned_at is None
    assert lead.source is None


async def test_duplicate_external_id_conflicts_regardless_of_phone(db_session: AsyncSession, clock: FixedClock) -> None:
    service = LeadServices(db_session, clock=clock)
    await service.create_lead(name="Carlos", phone="612345678", external_id="zap-1")

    with pytest.raises(DuplicateLeadError):
        await service.create_lead(name="Someone Else", phone="699999999", external_id="zap-1")


async def test_duplicate_phone_conflicts_with_other_or_missing_external_id(db_session: AsyncSession, clock: FixedClock) -> None:
    service = LeadServices(db_session, clock=clock)
    await service.create_lead(name="Carlos", phone="612345678", external_id="zap-1")

    with pytest.raises(ConflictError):
        await service.create_lead(name="Carlos", phone="612345678", external_id="zap-2")
    with pytest.raises(ConflictError):
        await service.create_lead(name="Carlos", phone="612345678")

    count = await db_session.scalar(select(func.count(Lead.lead_id)))
    assert count == 1


async def test_source_is_created_once_and_reused(db_session: AsyncSession, clock: FixedClock) -> None:
    service = LeadServices(db_session, clock=clock)
    first = await service.create_lead(name="A", phone="611111111", source="n8n")
    second = await service.create_lead(name="B", phone="622222222", source="n8n")

    assert first.source_id == second.source_id
    assert await db_session.scalar(select(func.count(LeadSource.source_id))) == 1


async def test_create_lead_is_audited_with_agent_as_actor(db_session: AsyncSession, clock: FixedClock) -> None:
    maria = await make_user(db_session, "Maria")

    lead = await LeadServices(db_session, clock=clock).create_lead(name="Carlos", phone="612345678")

    entry = (await db_session.execute(select(AuditLog))).scalar_one()
    assert entry.action == "CREATE"
    assert entry.entity == "lead"
    assert entry.entity_id == str(lead.lead_id)
    assert entry.user_id == maria.user_id
    assert json.loads(entry.details)["assignedTo"] == str(maria.user_id)


async def test_unassigned_lead_is_audited_as_system(db_session: AsyncSession, clock: FixedClock) -> None:
    await LeadServices(db_session, clock=clock).create_lead(name="Carlos", phone="612345678")

    entry = (await db_session.execute(select(AuditLog))).scalar_one()
    assert entry.user_id is None


async def test_created_lead_is_cached(db_session: AsyncSession, clock: FixedClock, fake_redis: FakeRedis) -> None:
    lead = await LeadServices(db_session, fake_redis, clock).create_lead(
        name="Carlos", phone="612345678", external_id="zap-1",
    )

    assert json.loads(fake_redis.store["lead:phone:612345678"]) == {"lead_id": str(lead.lead_id)}
    assert "lead:external:zap-1" in fake_redis.store


async def test_cache_hit_rejects_before_database(db_session: AsyncSession, clock: FixedClock, fake_redis: FakeRedis) -> None:
    fake_redis.store[phone_cache_key("612345678")] = "{}"

    with pytest.raises(DuplicateLeadError, match="cache"):
        await LeadServices(db_session, fake_redis, clock).create_lead(name="Carlos", phone="612345678")


async def test_cache_outage_does_not_block_intake(db_session: AsyncSession, clock: FixedClock) -> None:
    class BrokenRedis:
        async def get(self, key):
            raise RedisConnectionError("down")

        async def set(self, key, value, ex=None):
            raise RedisConnectionError("down")

    lead = await LeadServices(db_session, BrokenRedis(), clock).create_lead(name="Carlos", phone="612345678")

    assert lead.phone == "612345678"
