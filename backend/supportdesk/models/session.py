"""
Conversation session model.

A session is identified by an opaque token issued before anything is
persisted; the document only appears in the store once the first user
message arrives. ``SessionRef`` makes that distinction explicit.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from pydantic import Field

from .base import DocumentModel, utcnow, truncate
from .message import Message

TITLE_MAX_LENGTH = 50
NEW_SESSION_NOTICE = "New customer support session started"


class SessionStatus(str, Enum):
    """Session lifecycle status."""
    ACTIVE = "active"
    ESCALATED = "escalated"
    RESOLVED = "resolved"


def derive_title(first_message: str) -> str:
    """Session title from the first user message."""
    if len(first_message) > TITLE_MAX_LENGTH:
        return truncate(first_message, TITLE_MAX_LENGTH - 3)
    return first_message


class Session(DocumentModel):
    """Persisted conversation session."""

    session_id: str = Field(..., min_length=1, max_length=255)
    user_id: Optional[str] = None
    title: str = "New Conversation"
    messages: List[Message] = Field(default_factory=list)
    status: SessionStatus = SessionStatus.ACTIVE
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def start(cls, session_id: str, first_message: str, user_id: Optional[str] = None) -> "Session":
        """
        Build a new session seeded with the session-start system message.

        Args:
            session_id: Token issued by create-session
            first_message: First user message (used for the title)
            user_id: Owner, if the caller is authenticated

        Returns:
            Unsaved Session
        """
        return cls(
            session_id=session_id,
            user_id=user_id,
            title=derive_title(first_message),
            messages=[Message.system(NEW_SESSION_NOTICE)],
        )

    @property
    def is_resolved(self) -> bool:
        return self.status == SessionStatus.RESOLVED.value


@dataclass(frozen=True)
class UnmaterializedSession:
    """A token that has been issued but has no persisted document yet."""
    session_id: str


@dataclass(frozen=True)
class MaterializedSession:
    """A token with a persisted session document."""
    session: Session

    @property
    def session_id(self) -> str:
        return self.session.session_id


SessionRef = Union[UnmaterializedSession, MaterializedSession]


__all__ = [
    'Session',
    'SessionStatus',
    'SessionRef',
    'UnmaterializedSession',
    'MaterializedSession',
    'derive_title',
    'NEW_SESSION_NOTICE',
]
