# models/user.py
from sqlalchemy import Column, String, Boolean, DateTime, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from uuid import uuid4

from callcrm.db.base_class import Base
from callcrm.models.enums import UserRole, sql_in
from callcrm.services.clock import utcnow


class User(Base):
    __tablename__ = "users"

    user_id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.ASESORA.value)
    is_active = Column(Boolean, nullable=False, default=True)  # gates lead assignment
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(f"role IN ({sql_in(UserRole)})", name="chk_user_role"),
        Index("idx_users_role_active", "role", "is_active"),
    )

    # Relationships
    assigned_leads = relationship("Lead", back_populates="assigned_user")
