# callcrm/services/dashboard_services.py
import calendar
import logging
from datetime import datetime, timedelta
from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from callcrm.crud import call_log as crud_call
from callcrm.crud import case as crud_case
from callcrm.crud import client as crud_client
from callcrm.crud import lead as crud_lead
from callcrm.crud import user as crud_user
from callcrm.services.clock import Clock, system_clock
from callcrm.services.exceptions import BadRequestError

logger = logging.getLogger(__name__)

PERIODS = ("day", "week", "month")


def period_start(period: str, now: datetime) -> datetime:
    """
    Start of the reporting window ending at `now`:
    - day: midnight of the current day
    - week: seven days back
    - month: same time one calendar month back, clamped to the month's last day
    """
    if period == "day":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        year, month = (now.year, now.month - 1) if now.month > 1 else (now.year - 1, 12)
        day = min(now.day, calendar.monthrange(year, month)[1])
        return now.replace(year=year, month=month, day=day)
    raise BadRequestError(f"Unknown period {period!r}; expected one of {', '.join(PERIODS)}")


class DashboardServices:

    def __init__(self, db: AsyncSession, clock: Clock = system_clock):
        self.db = db
        self.clock = clock

    async def get_metrics(self, period: str = "month") -> Dict[str, Any]:
        """
        Lead and agent figures for the window selected by `period`.

        Conversions are clients created in the window. Per-agent productivity
        counts leads assigned, cases touched and calls logged in the window,
        plus the agent's currently open cases, and is sorted by cases worked.
        """
        since = period_start(period, self.clock.now())

        total_leads = await crud_lead.count_leads_since(self.db, since)
        conversions = await crud_client.count_clients_since(self.db, since)
        conversion_pct = round(conversions * 100 / total_leads, 1) if total_leads else 0

        productivity = []
        for agent in await crud_user.list_agents(self.db):
            productivity.append({
                "user_id": agent.user_id,
                "name": agent.name,
                "is_active": agent.is_active,
                "leads_assigned": await crud_lead.count_leads_since(self.db, since, agent_id=agent.user_id),
                "cases_worked": await crud_case.count_cases_worked_since(self.db, agent.user_id, since),
                "calls_registered": await crud_call.count_calls_since(self.db, agent.user_id, since),
                "active_cases": await crud_case.count_open_cases(self.db, agent.user_id),
            })
        productivity.sort(key=lambda row: row["cases_worked"], reverse=True)

        logger.debug("Dashboard metrics for %s since %s: %s leads", period, since, total_leads)
        return {
            "period": period,
            "since": since,
            "total_leads": total_leads,
            "conversions": conversions,
            "conversion_pct": conversion_pct,
            "leads_by_status": await crud_lead.count_leads_by_status_since(self.db, since),
            "productivity": productivity,
        }
