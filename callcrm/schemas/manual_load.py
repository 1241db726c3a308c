from typing import List, Optional
from pydantic import BaseModel, EmailStr

from callcrm.schemas.case import CaseDetail
from callcrm.schemas.client import ClientOut
from callcrm.schemas.lead import LeadOut, Name, Phone


class ManualLoadItem(BaseModel):
    name: Name
    phone: Phone
    source: str
    email: Optional[EmailStr] = None
    observations: Optional[str] = None


class BulkLoadRequest(BaseModel):
    items: List[ManualLoadItem]


class ManualLoadResponse(BaseModel):
    lead: LeadOut
    client: ClientOut
    case: CaseDetail


class BulkLoadResponse(BaseModel):
    created: int
    skipped: int
    errors: List[str]
