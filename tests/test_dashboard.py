from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from callcrm.services.call_services import CallServices
from callcrm.services.case_status import CaseStatusMachine
from callcrm.services.clock import FixedClock
from callcrm.services.conversion_services import ConversionService
from callcrm.services.dashboard_services import DashboardServices, period_start
from callcrm.services.exceptions import BadRequestError
from conftest import START, make_lead, make_user

NOW = START + timedelta(days=3)  # 2026-03-05 09:00


@pytest.mark.parametrize(
    "period, now, expected",
    [
        ("day", datetime(2026, 3, 5, 9, 30), datetime(2026, 3, 5)),
        ("week", datetime(2026, 3, 5, 9, 30), datetime(2026, 2, 26, 9, 30)),
        ("month", datetime(2026, 3, 5, 9, 30), datetime(2026, 2, 5, 9, 30)),
        ("month", datetime(2026, 3, 31, 10, 0), datetime(2026, 2, 28, 10, 0)),
        ("month", datetime(2026, 1, 15, 8, 0), datetime(2025, 12, 15, 8, 0)),
    ],
)
def test_period_start(period, now, expected) -> None:
    assert period_start(period, now) == expected


def test_unknown_period_is_rejected() -> None:
    with pytest.raises(BadRequestError):
        period_start("year", NOW)


@pytest.fixture()
async def activity(db_session: AsyncSession, clock: FixedClock):
    """Two agents, four leads spread over two months, one conversion and one call today."""
    clock.set(NOW)
    maria = await make_user(db_session, "Maria")
    laura = await make_user(db_session, "Laura")
    today = await make_lead(db_session, "600000001", maria.user_id, created_at=NOW - timedelta(hours=1))
    await make_lead(db_session, "600000002", maria.user_id, created_at=START)
    await make_lead(db_session, "600000003", laura.user_id, created_at=datetime(2026, 2, 15, 12, 0))
    await make_lead(db_session, "600000004", laura.user_id, created_at=datetime(2026, 1, 20, 12, 0))

    converted = await ConversionService(db_session, clock).convert_lead_to_client(today.lead_id, maria.user_id)
    await CallServices(db_session, clock).create_call(
        converted["case"].case_id, NOW, 5, "contestó", maria.user_id,
    )
    return {"maria": maria, "laura": laura, "case_id": converted["case"].case_id}


@pytest.mark.parametrize(
    "period, total, pct, laura_leads",
    [("day", 1, 100.0, 0), ("week", 2, 50.0, 0), ("month", 3, 33.3, 1)],
)
async def test_metrics_follow_the_period_window(
    db_session: AsyncSession, clock: FixedClock, activity, period, total, pct, laura_leads,
) -> None:
    metrics = await DashboardServices(db_session, clock).get_metrics(period)

    assert metrics["period"] == period
    assert metrics["since"] == period_start(period, NOW)
    assert metrics["total_leads"] == total
    assert metrics["conversions"] == 1
    assert metrics["conversion_pct"] == pct
    assert sum(metrics["leads_by_status"].values()) == total
    assert metrics["leads_by_status"]["contactado"] == 1
    laura = next(row for row in metrics["productivity"] if row["name"] == "Laura")
    assert laura["leads_assigned"] == laura_leads


async def test_productivity_is_sorted_by_cases_worked(db_session: AsyncSession, clock: FixedClock, activity) -> None:
    metrics = await DashboardServices(db_session, clock).get_metrics("week")

    assert [row["name"] for row in metrics["productivity"]] == ["Maria", "Laura"]
    maria = metrics["productivity"][0]
    assert maria["user_id"] == activity["maria"].user_id
    assert (maria["leads_assigned"], maria["cases_worked"], maria["calls_registered"], maria["active_cases"]) == (2, 1, 1, 1)
    laura = metrics["productivity"][1]
    assert (laura["leads_assigned"], laura["cases_worked"], laura["calls_registered"], laura["active_cases"]) == (0, 0, 0, 0)


async def test_closed_case_is_worked_but_not_active(db_session: AsyncSession, clock: FixedClock, activity) -> None:
    await CaseStatusMachine(db_session, clock).set_status(activity["case_id"], "cerrado", activity["maria"].user_id)

    metrics = await DashboardServices(db_session, clock).get_metrics("day")

    maria = metrics["productivity"][0]
    assert maria["cases_worked"] == 1
    assert maria["active_cases"] == 0


async def test_metrics_without_leads(db_session: AsyncSession, clock: FixedClock) -> None:
    await make_user(db_session, "Maria")

    metrics = await DashboardServices(db_session, clock).get_metrics("month")

    assert metrics["total_leads"] == 0
    assert metrics["conversions"] == 0
    assert metrics["conversion_pct"] == 0
    assert metrics["leads_by_status"] == {}
    assert metrics["productivity"][0]["leads_assigned"] == 0
