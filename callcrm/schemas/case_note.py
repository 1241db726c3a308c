from typing import Optional, Annotated
from pydantic import BaseModel, StringConstraints, field_validator
from uuid import UUID
from datetime import datetime

from callcrm.models import ManagementType
from callcrm.services.clock import as_naive_utc

Content = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class CaseNoteCreate(BaseModel):
    management_type: ManagementType
    content: Content
    next_follow_up_date: Optional[datetime] = None

    # Columns are naive UTC; "...Z" or "+02:00" inputs are converted
    @field_validator("next_follow_up_date")
    @classmethod
    def follow_up_to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_naive_utc(v) if v else v


# Only the fields sent are applied; read with model_dump(exclude_unset=True)
class CaseNoteUpdate(BaseModel):
    content: Optional[Content] = None
    management_type: Optional[ManagementType] = None
    next_follow_up_date: Optional[datetime] = None

    @field_validator("next_follow_up_date")
    @classmethod
    def follow_up_to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_naive_utc(v) if v else v


class CaseNoteOut(BaseModel):
    note_id: UUID
    case_id: UUID
    user_id: Optional[UUID] = None
    role: str
    management_type: ManagementType
    content: str
    status_snapshot: str
    next_follow_up_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    annulled_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
