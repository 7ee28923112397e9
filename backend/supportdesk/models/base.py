"""
Shared helpers for persisted models.
"""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T", bound="DocumentModel")


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


def truncate(text: str, limit: int, suffix: str = "...") -> str:
    """Cut ``text`` to ``limit`` characters, appending ``suffix`` when cut."""
    if len(text) > limit:
        return text[:limit] + suffix
    return text


class DocumentModel(BaseModel):
    """
    Base for models stored in the document store.

    Documents are JSON-compatible dicts: datetimes become ISO-8601 strings
    (UTC offsets included, so lexicographic order is chronological).
    """

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_document(cls: Type[T], data: Dict[str, Any]) -> T:
        return cls.model_validate(data)


__all__ = ['DocumentModel', 'utcnow', 'new_id', 'truncate']
