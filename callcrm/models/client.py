# models/client.py
from sqlalchemy import Column, String, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from uuid import uuid4

from callcrm.db.base_class import Base
from callcrm.services.clock import utcnow


class Client(Base):
    __tablename__ = "clients"

    client_id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(200), nullable=False)
    phone = Column(String(30), nullable=False)
    email = Column(String(255), nullable=True)
    # One client per lead is enforced by ConversionService, not by the schema
    lead_id = Column(UUID(as_uuid=True), ForeignKey("leads.lead_id", ondelete="RESTRICT"), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_clients_lead", "lead_id"),
    )

    # Relationships
    lead = relationship("Lead", back_populates="clients")
    cases = relationship("Case", back_populates="client", cascade="all, delete-orphan")
