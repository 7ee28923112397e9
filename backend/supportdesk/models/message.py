"""
Transcript message model.
"""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .base import utcnow


class MessageRole(str, Enum):
    """Message role enumeration."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class MessageSource(str, Enum):
    """Where a transcript entry came from."""
    FAQ = "faq"
    AI = "ai"
    SYSTEM = "system"
    ADMIN = "admin"


class Message(BaseModel):
    """
    One transcript entry. Entries are never edited once appended.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=utcnow)
    source: MessageSource = MessageSource.AI

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str, source: MessageSource = MessageSource.AI) -> "Message":
        return cls(role=MessageRole.ASSISTANT, content=content, source=source)

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=MessageRole.SYSTEM, content=content, source=MessageSource.SYSTEM)

    def to_document(self) -> dict:
        return self.model_dump(mode="json")


__all__ = ['Message', 'MessageRole', 'MessageSource']
