from typing import Literal
from pydantic import BaseModel
from uuid import UUID
from datetime import datetime


class AgentRef(BaseModel):
    user_id: UUID
    name: str

    model_config = {"from_attributes": True}


class UserOut(BaseModel):
    user_id: UUID
    name: str
    email: str
    role: Literal["admin", "supervisor", "asesora"]
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UserActiveUpdate(BaseModel):
    is_active: bool


class AgentDistributionItem(BaseModel):
    agent_id: UUID
    name: str
    is_active: bool
    total_leads: int
    active_leads: int


# --- Authenticated caller, decoded from the bearer token ---
class Actor(BaseModel):
    user_id: UUID
    role: Literal["admin", "supervisor", "asesora"]
