# models/lead_source.py
from sqlalchemy import Column, String, Text, DateTime, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from uuid import uuid4

from callcrm.db.base_class import Base
from callcrm.services.clock import utcnow


class LeadSource(Base):
    __tablename__ = "lead_sources"

    source_id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(100), nullable=False)  # Zapier, n8n, Web, Teléfono ...
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        Index("idx_sources_name", "name"),
    )

    # Relationships
    leads = relationship("Lead", back_populates="source")
