# models/case_note.py
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from uuid import uuid4

from callcrm.db.base_class import Base
from callcrm.models.enums import CaseStatus, ManagementType, UserRole, sql_in
from callcrm.services.clock import utcnow


class CaseNote(Base):
    __tablename__ = "case_notes"

    note_id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    case_id = Column(UUID(as_uuid=True), ForeignKey("cases.case_id", ondelete="CASCADE"), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    role = Column(String(20), nullable=False)  # author's role when the note was written
    management_type = Column(String(30), nullable=False)
    content = Column(Text, nullable=False)
    status_snapshot = Column(String(30), nullable=False)  # case status when the note was written
    next_follow_up_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    annulled_at = Column(DateTime, nullable=True)  # terminal once set

    __table_args__ = (
        CheckConstraint(f"role IN ({sql_in(UserRole)})", name="chk_note_role"),
        CheckConstraint(f"management_type IN ({sql_in(ManagementType)})", name="chk_note_management_type"),
        CheckConstraint(f"status_snapshot IN ({sql_in(CaseStatus)})", name="chk_note_status_snapshot"),
        CheckConstraint(
            "management_type <> 'reagendar' OR next_follow_up_date IS NOT NULL",
            name="chk_note_reagendar_date",
        ),
        Index("idx_notes_case", "case_id"),
        Index("idx_notes_user", "user_id"),
        Index("idx_notes_follow_up", "next_follow_up_date"),
    )

    # Relationships
    case = relationship("Case", back_populates="notes")
    user = relationship("User")
