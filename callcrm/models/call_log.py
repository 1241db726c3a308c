# models/call_log.py
from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from uuid import uuid4

from callcrm.db.base_class import Base
from callcrm.services.clock import utcnow


class CallLog(Base):
    __tablename__ = "call_logs"

    call_id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    case_id = Column(UUID(as_uuid=True), ForeignKey("cases.case_id", ondelete="CASCADE"), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    date = Column(DateTime, nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    result = Column(String(50), nullable=False)  # contestó, no contestó, buzón ...
    observations = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        CheckConstraint("duration >= 0", name="chk_call_duration"),
        Index("idx_calls_case", "case_id"),
        Index("idx_calls_user", "user_id"),
        Index("idx_calls_time", "created_at"),
    )

    # Relationships
    case = relationship("Case", back_populates="calls")
    user = relationship("User")
