# callcrm/services/note_permissions.py
"""
Who may edit or annul a case note.

Pure functions over the note's stored fields, no database access:

- asesora:    edits only her own notes, within NOTE_EDIT_WINDOW of creation
              (inclusive); never annuls.
- supervisor: edits any note not written by an admin; annuls only notes
              written by an asesora.
- admin:      unrestricted.

`role` on the note is the author's role when it was written, not today's.
"""
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from callcrm.models import CaseNote, UserRole

NOTE_EDIT_WINDOW = timedelta(minutes=10)


def edit_denial_reason(actor_role: str, note: CaseNote, actor_id: UUID, now: datetime) -> Optional[str]:
    """None when the edit is allowed, otherwise the reason it is not."""
    if actor_role == UserRole.ASESORA.value:
        if note.user_id != actor_id:
            return "Agents can only edit their own notes"
        if now - note.created_at > NOTE_EDIT_WINDOW:
            return "Notes can only be edited within 10 minutes of creation"
        return None

    if actor_role == UserRole.SUPERVISOR.value:
        if note.role == UserRole.ADMIN.value:
            return "Supervisors cannot edit notes written by an admin"
        return None

    if actor_role == UserRole.ADMIN.value:
        return None

    return f"Unknown role {actor_role!r}"


def annul_denial_reason(actor_role: str, note: Optional[CaseNote] = None) -> Optional[str]:
    """None when the annulment is allowed. Agents are refused before the note is looked at."""
    if actor_role == UserRole.ASESORA.value:
        return "Agents cannot annul notes"

    if actor_role == UserRole.SUPERVISOR.value:
        if note is not None and note.role != UserRole.ASESORA.value:
            return "Supervisors can only annul notes written by agents"
        return None

    if actor_role == UserRole.ADMIN.value:
        return None

    return f"Unknown role {actor_role!r}"


def can_edit_note(actor_role: str, note: CaseNote, actor_id: UUID, now: datetime) -> bool:
    return edit_denial_reason(actor_role, note, actor_id, now) is None


def can_annul_note(actor_role: str, note: CaseNote) -> bool:
    return annul_denial_reason(actor_role, note) is None
