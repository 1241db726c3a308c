from typing import Optional
from pydantic import BaseModel
from uuid import UUID
from datetime import datetime


class AuditLogOut(BaseModel):
    audit_id: UUID
    user_id: Optional[UUID] = None
    action: str
    entity: str
    entity_id: Optional[str] = None
    details: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
