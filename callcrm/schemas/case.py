from typing import List, Optional
from pydantic import BaseModel
from uuid import UUID
from datetime import datetime

from callcrm.models import CaseStatus
from callcrm.schemas.user import AgentRef


class StatusHistoryOut(BaseModel):
    history_id: UUID
    previous_status: Optional[str] = None
    new_status: str
    user_id: Optional[UUID] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class CallLogOut(BaseModel):
    call_id: UUID
    case_id: UUID
    user_id: Optional[UUID] = None
    date: datetime
    duration: int
    result: str
    observations: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class CaseOut(BaseModel):
    case_id: UUID
    client_id: UUID
    lead_id: UUID
    status: CaseStatus
    created_at: datetime
    updated_at: datetime
    history: List[StatusHistoryOut] = []
    calls: List[CallLogOut] = []

    model_config = {"from_attributes": True}


# --- Nested refs for the detail view ---
class CaseClientRef(BaseModel):
    client_id: UUID
    name: str
    phone: str
    email: Optional[str] = None

    model_config = {"from_attributes": True}


class CaseLeadRef(BaseModel):
    lead_id: UUID
    name: str
    phone: str
    status: str
    assigned_user: Optional[AgentRef] = None

    model_config = {"from_attributes": True}


class CaseDetail(CaseOut):
    client: CaseClientRef
    lead: CaseLeadRef


class CaseStatusUpdate(BaseModel):
    status: CaseStatus
