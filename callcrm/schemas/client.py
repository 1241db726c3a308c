from typing import List, Optional
from pydantic import BaseModel
from uuid import UUID
from datetime import datetime

from callcrm.schemas.case import CaseDetail, CaseOut


class ClientLeadRef(BaseModel):
    lead_id: UUID
    name: str
    status: str
    assigned_user_id: Optional[UUID] = None

    model_config = {"from_attributes": True}


class ClientOut(BaseModel):
    client_id: UUID
    name: str
    phone: str
    email: Optional[str] = None
    lead_id: UUID
    created_at: datetime
    lead: Optional[ClientLeadRef] = None
    cases: List[CaseOut] = []

    model_config = {"from_attributes": True}


class ConversionResponse(BaseModel):
    client: ClientOut
    case: CaseDetail
