from typing import Dict, List
from pydantic import BaseModel
from uuid import UUID
from datetime import datetime


class AgentProductivity(BaseModel):
    user_id: UUID
    name: str
    is_active: bool
    leads_assigned: int
    cases_worked: int
    calls_registered: int
    active_cases: int


class DashboardMetrics(BaseModel):
    period: str
    since: datetime
    total_leads: int
    conversions: int
    conversion_pct: float
    leads_by_status: Dict[str, int]
    productivity: List[AgentProductivity]
