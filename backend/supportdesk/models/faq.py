"""
FAQ catalog entry.
"""
from datetime import datetime
from typing import List

from pydantic import Field, field_validator

from .base import DocumentModel, new_id, utcnow


class FAQEntry(DocumentModel):
    id: str = Field(default_factory=new_id)
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)
    category: str = "General"
    tags: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator('tags')
    @classmethod
    def normalise_tags(cls, v: List[str]) -> List[str]:
        return [tag.strip().lower() for tag in v if tag.strip()]


__all__ = ['FAQEntry']
