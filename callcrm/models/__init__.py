from .enums import UserRole, CaseStatus, ManagementType
from .user import User
from .lead_source import LeadSource
from .lead import Lead
from .client import Client
from .case import Case
from .status_history import StatusHistory
from .call_log import CallLog
from .case_note import CaseNote
from .audit_log import AuditLog

__all__ = [
    "UserRole", "CaseStatus", "ManagementType",
    "User", "LeadSource", "Lead", "Client", "Case",
    "StatusHistory", "CallLog", "CaseNote", "AuditLog",
]
