# models/lead.py
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, CheckConstraint, UniqueConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from uuid import uuid4

from callcrm.db.base_class import Base
from callcrm.models.enums import CaseStatus, sql_in
from callcrm.services.clock import utcnow


class Lead(Base):
    __tablename__ = "leads"

    lead_id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(200), nullable=False)
    phone = Column(String(30), nullable=False)
    email = Column(String(255), nullable=True)
    external_id = Column(String(100), nullable=True)  # id sent by Zapier/n8n, used for dedup
    source_id = Column(UUID(as_uuid=True), ForeignKey("lead_sources.source_id", ondelete="SET NULL"), nullable=True)
    status = Column(String(30), nullable=False, default=CaseStatus.NUEVO.value)
    assigned_user_id = Column(UUID(as_uuid=True), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    assigned_at = Column(DateTime, nullable=True)
    created_manually = Column(Boolean, nullable=False, default=False)
    observations = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(f"status IN ({sql_in(CaseStatus)})", name="chk_lead_status"),
        UniqueConstraint("phone", name="uq_lead_phone"),
        UniqueConstraint("external_id", name="uq_lead_external_id"),
        Index("idx_leads_assigned", "assigned_user_id", "status"),
        Index("idx_leads_assigned_at", "assigned_at"),
    )

    # Relationships
    source = relationship("LeadSource", back_populates="leads")
    assigned_user = relationship("User", back_populates="assigned_leads")
    clients = relationship("Client", back_populates="lead")
    cases = relationship("Case", back_populates="lead")
