from __future__ import annotations

import json
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from callcrm.models import AuditLog, CaseStatus
from callcrm.services.case_status import ALLOWED_TRANSITIONS, CaseStatusMachine, can_transition
from callcrm.services.clock import FixedClock
from callcrm.services.exceptions import NotFoundError
from conftest import history_for, make_case, make_user


def test_every_status_may_reach_every_status() -> None:
    for current in CaseStatus:
        assert ALLOWED_TRANSITIONS[current] == frozenset(CaseStatus)
        for new in CaseStatus:
            assert can_transition(current.value, new.value)


async def test_set_status_updates_case_and_appends_history(db_session: AsyncSession, clock: FixedClock) -> None:
    maria = await make_user(db_session, "Maria")
    case = await make_case(db_session, assigned_user_id=maria.user_id)
    clock.advance(minutes=5)

    updated = await CaseStatusMachine(db_session, clock).set_status(case.case_id, "pendiente_llamada", maria.user_id)

    assert updated.status == "pendiente_llamada"
    assert updated.updated_at == clock.now()
    rows = await history_for(db_session, case.case_id)
    assert [(r.previous_status, r.new_status, r.user_id) for r in rows] == [
        ("nuevo", "pendiente_llamada", maria.user_id),
    ]


async def test_same_status_is_still_recorded(db_session: AsyncSession, clock: FixedClock) -> None:
    maria = await make_user(db_session, "Maria")
    case = await make_case(db_session, status="seguimiento")

    await CaseStatusMachine(db_session, clock).set_status(case.case_id, CaseStatus.SEGUIMIENTO, maria.user_id)

    rows = await history_for(db_session, case.case_id)
    assert len(rows) == 1
    assert rows[0].previous_status == rows[0].new_status == "seguimiento"


async def test_closed_case_can_be_reopened(db_session: AsyncSession, clock: FixedClock) -> None:
    sup = await make_user(db_session, "Sofia", role="supervisor")
    case = await make_case(db_session, status="cerrado")

    updated = await CaseStatusMachine(db_session, clock).set_status(case.case_id, "seguimiento", sup.user_id)

    assert updated.status == "seguimiento"


async def test_history_keeps_every_change_in_order(db_session: AsyncSession, clock: FixedClock) -> None:
    maria = await make_user(db_session, "Maria")
    case = await make_case(db_session)
    machine = CaseStatusMachine(db_session, clock)

    for status in ("pendiente_llamada", "no_contesta", "contactado"):
        clock.advance(minutes=1)
        await machine.set_status(case.case_id, status, maria.user_id)

    detail = await machine.get_case(case.case_id)
    assert [(h.previous_status, h.new_status) for h in detail.history] == [
        ("nuevo", "pendiente_llamada"),
        ("pendiente_llamada", "no_contesta"),
        ("no_contesta", "contactado"),
    ]


async def test_unknown_case_is_not_found(db_session: AsyncSession, clock: FixedClock) -> None:
    with pytest.raises(NotFoundError):
        await CaseStatusMachine(db_session, clock).set_status(uuid4(), "cerrado", uuid4())


async def test_unknown_status_is_rejected(db_session: AsyncSession, clock: FixedClock) -> None:
    case = await make_case(db_session)

    with pytest.raises(ValueError):
        await CaseStatusMachine(db_session, clock).set_status(case.case_id, "archivado", uuid4())

    assert await history_for(db_session, case.case_id) == []


async def test_status_change_is_audited(db_session: AsyncSession, clock: FixedClock) -> None:
    maria = await make_user(db_session, "Maria")
    case = await make_case(db_session)

    await CaseStatusMachine(db_session, clock).set_status(case.case_id, "contactado", maria.user_id)

    entry = (await db_session.execute(select(AuditLog))).scalar_one()
    assert entry.action == "UPDATE_STATUS"
    assert entry.entity == "case"
    assert entry.user_id == maria.user_id
    assert json.loads(entry.details) == {"previousStatus": "nuevo", "newStatus": "contactado"}


async def test_agents_only_list_cases_of_their_leads(db_session: AsyncSession, clock: FixedClock) -> None:
    maria = await make_user(db_session, "Maria")
    laura = await make_user(db_session, "Laura")
    mine = await make_case(db_session, assigned_user_id=maria.user_id)
    await make_case(db_session, assigned_user_id=laura.user_id)
    machine = CaseStatusMachine(db_session, clock)

    own = await machine.list_cases(maria.user_id, "asesora")
    everything = await machine.list_cases(uuid4(), "supervisor")

    assert [c.case_id for c in own] == [mine.case_id]
    assert len(everything) == 2
