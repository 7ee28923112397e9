"""
User directory operations: registration, login, profile and admin-side user
management.
"""
import logging
from typing import List, Optional, Tuple

from ..exceptions import Forbidden, InvalidRequest, NotFound, Unauthorized
from ..models import HANDLER_ROLES, User, UserRole, utcnow
from ..store import UserRepository
from .auth_service import AuthService

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class UserService:
    def __init__(self, users: UserRepository, auth: AuthService):
        self.users = users
        self.auth = auth

    async def create_user(
        self,
        name: str,
        email: str,
        password: str,
        role: UserRole = UserRole.CUSTOMER,
    ) -> User:
        """
        Create an account.

        Raises:
            InvalidRequest: Missing fields, short password or duplicate email
        """
        if not name or not name.strip() or not email or not email.strip():
            raise InvalidRequest("Name and email are required")
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidRequest(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        if await self.users.get_by_email(email):
            raise InvalidRequest("User already exists with this email")

        try:
            user = User(
                name=name,
                email=email,
                password_hash=self.auth.hash_password(password),
                role=role,
            )
        except ValueError as e:
            raise InvalidRequest(str(e)) from e

        if not await self.users.insert(user):
            raise InvalidRequest("User already exists")

        logger.info(f"Created user {user.id} with role {user.role}")
        return user

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        role: UserRole = UserRole.CUSTOMER,
        actor: Optional[User] = None,
    ) -> Tuple[User, str]:
        """
        Self-service registration.

        Handler accounts can only be created by an authenticated admin.

        Returns:
            (user, access token)
        """
        role_value = UserRole(role).value
        if role_value in HANDLER_ROLES and (actor is None or actor.role != UserRole.ADMIN.value):
            raise Forbidden("Only admins can create admin or support agent accounts")

        user = await self.create_user(name, email, password, role)
        user = await self.users.update(user.id, last_login=utcnow()) or user
        return user, self.auth.create_token(user)

    async def login(self, email: str, password: str) -> Tuple[User, str]:
        """
        Check credentials.

        Raises:
            Unauthorized: Unknown email, wrong password or deactivated account
        """
        user = await self.users.get_by_email(email or "")
        if user is None or not self.auth.verify_password(password or "", user.password_hash):
            raise Unauthorized("Invalid email or password")
        if not user.is_active:
            raise Unauthorized("Account is deactivated. Please contact an administrator")

        user = await self.users.update(user.id, last_login=utcnow()) or user
        logger.info(f"User {user.id} logged in")
        return user, self.auth.create_token(user)

    async def update_profile(
        self,
        user: User,
        name: Optional[str] = None,
        password: Optional[str] = None,
    ) -> User:
        fields = {}
        if name is not None:
            if not name.strip():
                raise InvalidRequest("Name cannot be blank")
            fields["name"] = name.strip()
        if password:
            if len(password) < MIN_PASSWORD_LENGTH:
                raise InvalidRequest(
                    f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
                )
            fields["password_hash"] = self.auth.hash_password(password)
        if not fields:
            return user

        updated = await self.users.update(user.id, **fields)
        if updated is None:
            raise NotFound("User not found")
        return updated

    async def list_users(self) -> List[User]:
        return await self.users.list()

    async def update_user(
        self,
        user_id: str,
        name: Optional[str] = None,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
    ) -> User:
        """
        Admin update of name, role and active flag.

        Raises:
            NotFound: If the user does not exist
        """
        fields = {}
        if name is not None:
            if not name.strip():
                raise InvalidRequest("Name cannot be blank")
            fields["name"] = name.strip()
        if role is not None:
            fields["role"] = UserRole(role)
        if is_active is not None:
            fields["is_active"] = is_active

        if not fields:
            user = await self.users.get(user_id)
        else:
            user = await self.users.update(user_id, **fields)

        if user is None:
            raise NotFound(f"User {user_id} not found")

        logger.info(f"Updated user {user_id}: {sorted(fields)}")
        return user

    async def ensure_admin(self, email: str, password: str, name: str) -> User:
        """Create the bootstrap admin unless the email is already registered."""
        existing = await self.users.get_by_email(email)
        if existing:
            return existing
        return await self.create_user(name, email, password, UserRole.ADMIN)


__all__ = ['UserService', 'MIN_PASSWORD_LENGTH']
