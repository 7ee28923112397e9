"""
Pydantic schemas for request/response validation.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .user import UserRole


# Request Schemas

class SendMessageRequest(BaseModel):
    """User message for a support session."""
    session_id: Optional[str] = Field(None, max_length=255)
    message: Optional[str] = Field(None, max_length=4000)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "session_id": "0b5e1f3c-2c4e-4c8e-9f55-7c1a9e0f4d21",
                "message": "How can I track my order?",
            }
        }
    )


class AssignRequest(BaseModel):
    handler_id: Optional[str] = None


class NoteRequest(BaseModel):
    note: Optional[str] = Field(None, max_length=2000)


class ResolveRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=2000)


class PriorityRequest(BaseModel):
    priority: str


class AdminMessageRequest(BaseModel):
    message: Optional[str] = Field(None, max_length=4000)


class RegisterRequest(BaseModel):
    """Account registration."""
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., max_length=128)
    role: UserRole = UserRole.CUSTOMER

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Jane Doe",
                "email": "jane@example.com",
                "password": "secret123",
            }
        }
    )


class LoginRequest(BaseModel):
    email: str
    password: str


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    password: Optional[str] = Field(None, max_length=128)


class UpdateUserRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


# Response Schemas

class ApiResponse(BaseModel):
    """Envelope shared by every API response."""
    success: bool = True
    message: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


class TurnResponse(BaseModel):
    """Reply to a user message."""
    success: bool = True
    response: str
    source: str
    session_id: str
    status: str
    needs_escalation: bool = False
    escalation_id: Optional[str] = None
    priority: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "response": "You can track your order by logging into your account...",
                "source": "faq",
                "session_id": "0b5e1f3c-2c4e-4c8e-9f55-7c1a9e0f4d21",
                "status": "active",
                "needs_escalation": False,
            }
        }
    )


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: datetime
    version: str
    services: Dict[str, str] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Error response."""
    success: bool = False
    error: str
    message: Optional[str] = None
    request_id: Optional[str] = None


__all__ = [
    'SendMessageRequest',
    'AssignRequest',
    'NoteRequest',
    'ResolveRequest',
    'PriorityRequest',
    'AdminMessageRequest',
    'RegisterRequest',
    'LoginRequest',
    'ProfileUpdateRequest',
    'UpdateUserRequest',
    'ApiResponse',
    'TurnResponse',
    'HealthResponse',
    'ErrorResponse',
]
