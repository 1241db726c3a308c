from typing import List, Optional, Annotated
from pydantic import BaseModel, EmailStr, StringConstraints
from uuid import UUID
from datetime import datetime

from callcrm.schemas.case import CaseOut
from callcrm.schemas.user import AgentRef

Phone = Annotated[str, StringConstraints(strip_whitespace=True, min_length=7, max_length=30)]
Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]


# --- Intake request (webhooks: Zapier / n8n / web form) ---
class LeadCreateRequest(BaseModel):
    name: Name
    phone: Phone
    email: Optional[EmailStr] = None
    source: Optional[str] = None
    external_id: Optional[str] = None


class LeadSourceOut(BaseModel):
    source_id: UUID
    name: str

    model_config = {"from_attributes": True}


class LeadOut(BaseModel):
    lead_id: UUID
    name: str
    phone: str
    email: Optional[str] = None
    external_id: Optional[str] = None
    status: str
    assigned_user: Optional[AgentRef] = None
    assigned_at: Optional[datetime] = None
    source: Optional[LeadSourceOut] = None
    created_manually: bool
    observations: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class LeadDetail(LeadOut):
    cases: List[CaseOut] = []
