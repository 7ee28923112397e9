"""
Escalation record model.

An escalation record tracks human handling of one session. There is at most
one record per session token; later escalations reopen it.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .base import DocumentModel, new_id, utcnow


class EscalationStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        return PRIORITY_RANK[self.value]


PRIORITY_RANK = {"low": 0, "medium": 1, "high": 2, "urgent": 3}

OPEN_STATUSES = (EscalationStatus.PENDING.value, EscalationStatus.IN_PROGRESS.value)
TERMINAL_STATUSES = (EscalationStatus.RESOLVED.value, EscalationStatus.CLOSED.value)


class Note(BaseModel):
    """Append-only log entry on an escalation record."""

    model_config = ConfigDict(frozen=True)

    handler_id: Optional[str] = Field(
        None,
        description="Author; None for system-authored notes"
    )
    text: str
    timestamp: datetime = Field(default_factory=utcnow)

    def to_document(self) -> dict:
        return self.model_dump(mode="json")


class EscalationRecord(DocumentModel):
    """Human-handling workflow overlay for a session."""

    id: str = Field(default_factory=new_id)
    session_id: str
    customer_id: Optional[str] = None
    assigned_handler_id: Optional[str] = None
    reason: str
    priority: Priority = Priority.MEDIUM
    status: EscalationStatus = EscalationStatus.PENDING
    notes: List[Note] = Field(default_factory=list)
    resolved_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def to_document(self) -> dict:
        data = super().to_document()
        data["priority_rank"] = PRIORITY_RANK[data["priority"]]
        return data

    @classmethod
    def from_document(cls, data: dict) -> "EscalationRecord":
        data = {k: v for k, v in data.items() if k != "priority_rank"}
        return cls.model_validate(data)

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES


__all__ = [
    'EscalationRecord',
    'EscalationStatus',
    'Priority',
    'PRIORITY_RANK',
    'Note',
    'OPEN_STATUSES',
    'TERMINAL_STATUSES',
]
