from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Literal
import logging
import traceback

from callcrm.db.session import get_db
from callcrm.routers.deps import require_roles
from callcrm.schemas.dashboard import DashboardMetrics
from callcrm.schemas.user import Actor
from callcrm.services.dashboard_services import DashboardServices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/dashboard", tags=["Dashboard"])


@router.get(
    "/metrics",
    response_model=DashboardMetrics,
    summary="Lead, conversion and agent productivity metrics",
    description="period: day (since midnight), week (last 7 days) or month (last calendar month)."
)
async def get_metrics(
    period: Literal["day", "week", "month"] = Query("month"),
    actor: Actor = Depends(require_roles("admin", "supervisor")),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await DashboardServices(db).get_metrics(period)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Error in get_metrics: %s\n%s", e, traceback.format_exc())
        raise HTTPException(status_code=500, detail="Internal Server Error")
