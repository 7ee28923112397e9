"""
Domain models.
"""
from .base import DocumentModel, utcnow, new_id, truncate
from .message import Message, MessageRole, MessageSource
from .session import (
    Session,
    SessionStatus,
    SessionRef,
    UnmaterializedSession,
    MaterializedSession,
    derive_title,
    NEW_SESSION_NOTICE,
)
from .escalation import (
    EscalationRecord,
    EscalationStatus,
    Priority,
    PRIORITY_RANK,
    Note,
    OPEN_STATUSES,
    TERMINAL_STATUSES,
)
from .user import User, UserRole, HANDLER_ROLES
from .faq import FAQEntry

__all__ = [
    'DocumentModel',
    'utcnow',
    'new_id',
    'truncate',
    'Message',
    'MessageRole',
    'MessageSource',
    'Session',
    'SessionStatus',
    'SessionRef',
    'UnmaterializedSession',
    'MaterializedSession',
    'derive_title',
    'NEW_SESSION_NOTICE',
    'EscalationRecord',
    'EscalationStatus',
    'Priority',
    'PRIORITY_RANK',
    'Note',
    'OPEN_STATUSES',
    'TERMINAL_STATUSES',
    'User',
    'UserRole',
    'HANDLER_ROLES',
    'FAQEntry',
]
