# models/status_history.py
from sqlalchemy import Column, String, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from uuid import uuid4

from callcrm.db.base_class import Base
from callcrm.services.clock import utcnow


class StatusHistory(Base):
    """Append-only; one row at case creation and one per status change."""
    __tablename__ = "status_history"

    history_id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    case_id = Column(UUID(as_uuid=True), ForeignKey("cases.case_id", ondelete="CASCADE"), nullable=False)
    previous_status = Column(String(30), nullable=True)  # null for the creation row
    new_status = Column(String(30), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        Index("idx_history_case", "case_id"),
        Index("idx_history_new_status", "new_status"),
        Index("idx_history_time", "created_at"),
    )

    # Relationships
    case = relationship("Case", back_populates="history")
    user = relationship("User")
