# models/case.py
from sqlalchemy import Column, String, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from uuid import uuid4

from callcrm.db.base_class import Base
from callcrm.models.enums import CaseStatus, sql_in
from callcrm.services.clock import utcnow


class Case(Base):
    __tablename__ = "cases"

    case_id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.client_id", ondelete="CASCADE"), nullable=False)
    lead_id = Column(UUID(as_uuid=True), ForeignKey("leads.lead_id", ondelete="RESTRICT"), nullable=False)
    status = Column(String(30), nullable=False, default=CaseStatus.NUEVO.value)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)  # bumped by every note

    __table_args__ = (
        CheckConstraint(f"status IN ({sql_in(CaseStatus)})", name="chk_case_status"),
        Index("idx_cases_client", "client_id"),
        Index("idx_cases_lead", "lead_id"),
        Index("idx_cases_updated", "updated_at"),
    )

    # Relationships
    client = relationship("Client", back_populates="cases")
    lead = relationship("Lead", back_populates="cases")
    history = relationship(
        "StatusHistory", back_populates="case",
        cascade="all, delete-orphan", order_by="StatusHistory.created_at",
    )
    calls = relationship(
        "CallLog", back_populates="case",
        cascade="all, delete-orphan", order_by="desc(CallLog.created_at)",
    )
    notes = relationship(
        "CaseNote", back_populates="case",
        cascade="all, delete-orphan", order_by="desc(CaseNote.created_at)",
    )
