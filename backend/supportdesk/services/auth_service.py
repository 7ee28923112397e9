"""
Authentication and authorization service.
"""
from datetime import timedelta
from typing import Any, Dict, Iterable, Optional
import logging

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext

from ..config import Settings
from ..exceptions import Forbidden, Unauthorized
from ..models import HANDLER_ROLES, User, utcnow

logger = logging.getLogger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)


class AuthService:
    """Handles password hashing and JWT issuance/verification."""

    def __init__(self, settings: Settings):
        self.secret_key = settings.get_secret_key()
        self.algorithm = settings.jwt_algorithm
        self.expiration_hours = settings.jwt_expiration_hours
        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=settings.bcrypt_rounds,
        )

    def create_token(self, user: User, metadata: Optional[Dict[str, Any]] = None) -> str:
        """
        Create a JWT token.

        Args:
            user: Authenticated user
            metadata: Additional claims

        Returns:
            JWT token string
        """
        now = utcnow()
        payload = {
            "sub": user.id,
            "role": user.role,
            "exp": now + timedelta(hours=self.expiration_hours),
            "iat": now,
            "type": "access",
        }

        if metadata:
            payload.update(metadata)

        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

        logger.debug(f"Created token for user: {user.id}")
        return token

    def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode a JWT token.

        Raises:
            Unauthorized: If the token is expired or invalid
        """
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])

        except jwt.ExpiredSignatureError as e:
            raise Unauthorized("Token has expired", cause=e) from e

        except jwt.InvalidTokenError as e:
            raise Unauthorized(f"Invalid token: {e}", cause=e) from e

    def hash_password(self, password: str) -> str:
        """Hash a password."""
        return self.pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        try:
            return self.pwd_context.verify(plain_password, hashed_password)
        except ValueError:
            logger.warning("Stored password hash is malformed")
            return False


async def _resolve_user(request: Request, token: str) -> User:
    services = request.app.state.services
    payload = services.auth.verify_token(token)

    user_id = payload.get("sub")
    if not user_id:
        raise Unauthorized("Invalid token payload")

    user = await services.repos.users.get(user_id)
    if user is None:
        raise Unauthorized("User no longer exists")
    if not user.is_active:
        raise Unauthorized("Account is deactivated")

    request.state.user_id = user.id
    return user


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[User]:
    """
    Get current user from an optional bearer token.

    Anonymous callers and invalid tokens both yield None, so support
    endpoints stay usable without an account.
    """
    if not credentials:
        return None

    try:
        return await _resolve_user(request, credentials.credentials)
    except Unauthorized as e:
        logger.debug(f"Ignoring invalid credentials on optional-auth route: {e}")
        return None


async def require_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> User:
    """
    Require authentication for an endpoint.

    Raises:
        Unauthorized: If no valid token is supplied
    """
    if not credentials:
        raise Unauthorized("Authentication required")
    return await _resolve_user(request, credentials.credentials)


class RoleChecker:
    """Check user roles for authorization."""

    def __init__(self, allowed_roles: Iterable[str]):
        self.allowed_roles = tuple(allowed_roles)

    async def __call__(self, user: User = Depends(require_user)) -> User:
        """
        Return the caller if their role is allowed.

        Raises:
            Forbidden: If the role is not allowed
        """
        if user.role not in self.allowed_roles:
            logger.warning(f"User {user.id} with role {user.role} denied")
            raise Forbidden("Insufficient permissions")
        return user


# Role checkers
require_admin = RoleChecker(["admin"])
require_handler = RoleChecker(HANDLER_ROLES)


__all__ = [
    'AuthService',
    'get_current_user',
    'require_user',
    'RoleChecker',
    'require_admin',
    'require_handler',
    'security',
]
