from __future__ import annotations

import json
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from callcrm.crud import case as crud_case
from callcrm.models import AuditLog, Case, Client, Lead, StatusHistory
from callcrm.services.clock import FixedClock
from callcrm.services.conversion_services import ConversionService
from callcrm.services.exceptions import AlreadyConvertedError, ConflictError, NotFoundError
from conftest import START, make_lead, make_user


async def _count(session: AsyncSession, column) -> int:
    return await session.scalar(select(func.count(column)))


async def test_convert_creates_client_case_and_initial_history(db_session: AsyncSession, clock: FixedClock) -> None:
    maria = await make_user(db_session, "Maria")
    admin = await make_user(db_session, "Root", role="admin")
    lead = await make_lead(db_session, phone="612345678", assigned_user_id=maria.user_id, name="Carlos")
    clock.advance(hours=1)

    result = await ConversionService(db_session, clock).convert_lead_to_client(lead.lead_id, admin.user_id)

    client, case = result["client"], result["case"]
    assert client.name == "Carlos"
    assert client.phone == "612345678"
    assert client.lead_id == lead.lead_id
    assert case.status == "nuevo"
    assert case.client_id == client.client_id
    assert case.lead_id == lead.lead_id
    assert len(case.history) == 1
    assert case.history[0].previous_status is None
    assert case.history[0].new_status == "nuevo"
    assert case.history[0].user_id == admin.user_id


async def test_convert_moves_lead_to_contactado_and_keeps_agent(db_session: AsyncSession, clock: FixedClock) -> None:
    maria = await make_user(db_session, "Maria")
    lead = await make_lead(db_session, phone="612345678", assigned_user_id=maria.user_id)

    await ConversionService(db_session, clock).convert_lead_to_client(lead.lead_id, maria.user_id)

    stored = await db_session.get(Lead, lead.lead_id)
    await db_session.refresh(stored)
    assert stored.status == "contactado"
    assert stored.assigned_user_id == maria.user_id
    assert stored.assigned_at == START


async def test_second_conversion_conflicts_and_creates_nothing(db_session: AsyncSession, clock: FixedClock) -> None:
    maria = await make_user(db_session, "Maria")
    lead = await make_lead(db_session, phone="612345678", assigned_user_id=maria.user_id)
    service = ConversionService(db_session, clock)
    await service.convert_lead_to_client(lead.lead_id, maria.user_id)

    with pytest.raises(AlreadyConvertedError):
        await service.convert_lead_to_client(lead.lead_id, maria.user_id)

    assert await _count(db_session, Client.client_id) == 1
    assert await _count(db_session, Case.case_id) == 1
    assert await _count(db_session, StatusHistory.history_id) == 1


def test_already_converted_is_a_conflict() -> None:
    assert issubclass(AlreadyConvertedError, ConflictError)


async def test_convert_unknown_lead_is_not_found(db_session: AsyncSession, clock: FixedClock) -> None:
    with pytest.raises(NotFoundError):
        await ConversionService(db_session, clock).convert_lead_to_client(uuid4(), None)


async def test_convert_is_audited_after_commit(db_session: AsyncSession, clock: FixedClock) -> None:
    maria = await make_user(db_session, "Maria")
    lead = await make_lead(db_session, phone="612345678", assigned_user_id=maria.user_id)

    result = await ConversionService(db_session, clock).convert_lead_to_client(lead.lead_id, maria.user_id)

    entry = (await db_session.execute(select(AuditLog))).scalar_one()
    assert entry.action == "CONVERT_LEAD"
    assert entry.entity == "client"
    assert entry.entity_id == str(result["client"].client_id)
    details = json.loads(entry.details)
    assert details == {"fromLeadId": str(lead.lead_id), "caseId": str(result["case"].case_id)}


async def test_failed_conversion_leaves_no_partial_state(
    db_session: AsyncSession, clock: FixedClock, monkeypatch: pytest.MonkeyPatch,
) -> None:
    maria = await make_user(db_session, "Maria")
    lead = await make_lead(db_session, phone="612345678", assigned_user_id=maria.user_id)

    async def broken_history(*args, **kwargs):
        raise RuntimeError("history table unavailable")

    monkeypatch.setattr(crud_case, "add_status_history", broken_history)

    with pytest.raises(RuntimeError):
        await ConversionService(db_session, clock).convert_lead_to_client(lead.lead_id, maria.user_id)

    assert await _count(db_session, Client.client_id) == 0
    assert await _count(db_session, Case.case_id) == 0
    assert await _count(db_session, AuditLog.audit_id) == 0
    stored = await db_session.get(Lead, lead.lead_id)
    await db_session.refresh(stored)
    assert stored.status == "nuevo"


async def test_get_client_unknown_is_not_found(db_session: AsyncSession, clock: FixedClock) -> None:
    with pytest.raises(NotFoundError):
        await ConversionService(db_session, clock).get_client(uuid4())
