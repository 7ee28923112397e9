"""
User account model.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import Field, field_validator

from .base import DocumentModel, new_id, utcnow


class UserRole(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    SUPPORT_AGENT = "support_agent"


HANDLER_ROLES = (UserRole.ADMIN.value, UserRole.SUPPORT_AGENT.value)


class User(DocumentModel):
    """Registered user. Admins and support agents act as handlers."""

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)
    password_hash: str
    role: UserRole = UserRole.CUSTOMER
    is_active: bool = True
    last_login: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator('email')
    @classmethod
    def normalise_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()

    @property
    def is_handler(self) -> bool:
        return self.role in HANDLER_ROLES

    def to_public_dict(self) -> Dict[str, Any]:
        """User data without the password hash."""
        data = self.model_dump(mode="json")
        data.pop("password_hash", None)
        return data


__all__ = ['User', 'UserRole', 'HANDLER_ROLES']
