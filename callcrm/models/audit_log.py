# models/audit_log.py
from sqlalchemy import Column, String, Text, DateTime, Index
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4

from callcrm.db.base_class import Base
from callcrm.services.clock import utcnow


class AuditLog(Base):
    __tablename__ = "audit_logs"

    audit_id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=True)  # null for system/webhook actions
    action = Column(String(50), nullable=False)
    entity = Column(String(50), nullable=False)
    entity_id = Column(String(64), nullable=True)
    details = Column(Text, nullable=True)  # JSON
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        Index("idx_audit_entity", "entity", "entity_id"),
        Index("idx_audit_user", "user_id"),
        Index("idx_audit_time", "created_at"),
    )
