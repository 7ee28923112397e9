"""
SupportDesk error taxonomy.

Every error raised by the domain layer derives from ``SupportDeskError`` and
carries the HTTP status the API layer reports it with.
"""
from typing import Optional


class SupportDeskError(Exception):
    """Base class for all SupportDesk errors."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str = "", *, cause: Optional[BaseException] = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        self.cause = cause

    def to_dict(self) -> dict:
        return {"error": self.error_code, "message": self.message}


class InvalidRequest(SupportDeskError):
    """Missing or malformed caller input."""
    status_code = 400
    error_code = "invalid_request"


class Unauthorized(SupportDeskError):
    """Missing, invalid or expired credentials."""
    status_code = 401
    error_code = "unauthorized"


class Forbidden(SupportDeskError):
    """Authenticated caller lacks the required role."""
    status_code = 403
    error_code = "forbidden"


class NotFound(SupportDeskError):
    """Referenced session, escalation, user or handler does not exist."""
    status_code = 404
    error_code = "not_found"


class SessionResolved(SupportDeskError):
    """User message submitted to a session that has been resolved."""
    status_code = 409
    error_code = "session_resolved"

    def __init__(self, session_id: str):
        super().__init__(
            "This conversation has been resolved. Please start a new session."
        )
        self.session_id = session_id


class InvalidTransition(SupportDeskError):
    """Escalation status change not permitted from the current status."""
    status_code = 409
    error_code = "invalid_transition"

    def __init__(self, current: str, attempted: str):
        super().__init__(f"Transition from {current} to {attempted} is not permitted")
        self.current = current
        self.attempted = attempted


class PersistenceFailure(SupportDeskError):
    """The document store could not complete an operation."""
    status_code = 503
    error_code = "persistence_failure"


class ProviderFailure(SupportDeskError):
    """The completion provider could not produce a reply or summary."""
    status_code = 502
    error_code = "provider_failure"


__all__ = [
    'SupportDeskError',
    'InvalidRequest',
    'Unauthorized',
    'Forbidden',
    'NotFound',
    'SessionResolved',
    'InvalidTransition',
    'PersistenceFailure',
    'ProviderFailure',
]
