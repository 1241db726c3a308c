from typing import Optional
from pydantic import BaseModel, Field, field_validator
from uuid import UUID
from datetime import datetime

from callcrm.services.clock import as_naive_utc


class CallCreate(BaseModel):
    case_id: UUID
    date: datetime
    duration: int = Field(ge=0, description="Minutes")
    result: str  # contestó | no contestó | buzón ...
    observations: Optional[str] = None

    @field_validator("date")
    @classmethod
    def date_to_utc(cls, v: datetime) -> datetime:
        return as_naive_utc(v)
