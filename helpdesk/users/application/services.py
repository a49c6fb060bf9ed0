"""
User Application Services
=========================

Authentication and user administration.

Following SOLID principles:
- Single Responsibility: AuthService issues/validates credentials,
  UserService manages directory records
- Dependency Inversion: Both depend on repository and hasher
  interfaces, not on SQLAlchemy or passlib
"""

import hashlib
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from uuid import uuid4

from helpdesk.access.domain import Action, RolePolicy, SessionContext
from helpdesk.config import Role, RouteId, settings
from helpdesk.core import (
    ConflictException,
    ForbiddenException,
    ResourceNotFoundException,
    UnauthenticatedException,
    ValidationException,
)
from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.users.application.dto import (
    ProfileUpdateRequest,
    RegisterRequest,
    UserCreateRequest,
    UserUpdateRequest,
)
from helpdesk.users.domain import User

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class IUserRepository(ABC):
    """Interface for user directory data access."""

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID."""

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by (normalized) email."""

    @abstractmethod
    async def list(self, roles: Optional[List[Role]] = None) -> List[User]:
        """List users, optionally restricted to the given roles."""

    @abstractmethod
    async def create(self, user: User, password_hash: str) -> User:
        """Persist a new user with its password hash."""

    @abstractmethod
    async def update(self, user: User) -> User:
        """Persist profile/role/status changes."""

    @abstractmethod
    async def delete(self, user_id: str) -> None:
        """Remove a user."""

    @abstractmethod
    async def get_password_hash(self, user_id: str) -> Optional[str]:
        """Stored password hash for the user."""

    @abstractmethod
    async def set_password_hash(self, user_id: str, password_hash: str) -> None:
        """Replace the stored password hash."""


class ISessionTokenRepository(ABC):
    """Interface for issued bearer tokens."""

    @abstractmethod
    async def create(self, token: str, user_id: str, expires_at: datetime) -> None:
        """Store a newly issued token."""

    @abstractmethod
    async def get_user_id(self, token: str, now: datetime) -> Optional[str]:
        """User owning an unexpired token, or None."""

    @abstractmethod
    async def revoke_for_user(self, user_id: str) -> int:
        """Drop every token of the user. Returns number removed."""

    @abstractmethod
    async def purge_expired(self, now: datetime) -> int:
        """Delete tokens that expired at or before `now`. Returns number removed."""


class IPasswordResetRepository(ABC):
    """
    Interface for outstanding password reset links.

    Only a digest of each reset token is stored.
    """

    @abstractmethod
    async def create(self, token_digest: str, user_id: str, expires_at: datetime) -> None:
        """Store a newly issued reset token digest."""

    @abstractmethod
    async def get_user_id(self, token_digest: str, now: datetime) -> Optional[str]:
        """User owning an unexpired reset token, or None."""

    @abstractmethod
    async def revoke_for_user(self, user_id: str) -> int:
        """Drop every reset token of the user. Returns number removed."""

    @abstractmethod
    async def purge_expired(self, now: datetime) -> int:
        """Delete reset tokens that expired at or before `now`."""


class IPasswordHasher(ABC):
    """Interface for password hashing."""

    @abstractmethod
    def hash(self, password: str) -> str:
        """Hash a plain-text password."""

    @abstractmethod
    def verify(self, password: str, password_hash: str) -> bool:
        """Check a plain-text password against a stored hash."""


class IAssignmentReleaser(ABC):
    """Clears ticket assignments held by a user who can no longer be an assignee."""

    @abstractmethod
    async def release_assignments(self, session: SessionContext, user_id: str) -> int:
        """Unassign every ticket assigned to the user. Returns how many changed."""


# ========== Application Services ==========

@dataclass
class AuthResult:
    """Issued credential."""
    token: str
    expires_at: datetime
    user: User


@dataclass
class PasswordResetGrant:
    """One-time reset token handed to an administrator to pass on."""
    token: str
    expires_at: datetime
    user: User


def _validate_password(password: str) -> None:
    if len(password) < settings.min_password_length:
        raise ValidationException(
            f"Password must be at least {settings.min_password_length} characters",
            {"field": "password"}
        )


def _digest(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class AuthService:
    """
    Service for registration, login, password resets and token resolution.

    Tokens are opaque random strings stored server-side with an expiry.
    Reset tokens are single use and stored only as a SHA-256 digest.
    """

    def __init__(
        self,
        user_repository: IUserRepository,
        token_repository: ISessionTokenRepository,
        hasher: IPasswordHasher,
        token_ttl_minutes: Optional[int] = None,
        reset_repository: Optional[IPasswordResetRepository] = None,
        reset_ttl_minutes: Optional[int] = None
    ):
        self._users = user_repository
        self._tokens = token_repository
        self._hasher = hasher
        self._resets = reset_repository
        self._ttl = timedelta(minutes=token_ttl_minutes or settings.token_ttl_minutes)
        self._reset_ttl = timedelta(minutes=reset_ttl_minutes or settings.reset_token_ttl_minutes)

    async def register(self, request: RegisterRequest) -> AuthResult:
        """
        Create a Customer account and sign it in.

        Raises:
            ConflictException: If the email is already registered
            ValidationException: If the password is too short
        """
        _validate_password(request.password)
        if await self._users.get_by_email(request.email):
            raise ConflictException("Email already registered", {"email": request.email})

        user = User(
            id=str(uuid4()),
            email=request.email,
            role=Role.CUSTOMER,
            name=request.name,
            department=request.department,
        )
        user = await self._users.create(user, self._hasher.hash(request.password))
        logger.info("User registered", extra={"user_id": user.id})
        return await self._issue(user)

    async def login(self, email: str, password: str) -> AuthResult:
        """
        Exchange credentials for a bearer token.

        Raises:
            UnauthenticatedException: On unknown email, wrong password or
                inactive account
        """
        user = await self._users.get_by_email(email.strip().lower())
        password_hash = await self._users.get_password_hash(user.id) if user else None
        if not user or not password_hash or not self._hasher.verify(password, password_hash):
            logger.info("Login failed", extra={"email": email})
            raise UnauthenticatedException("Invalid email or password")

        if not user.is_active:
            raise UnauthenticatedException("Account is inactive")

        return await self._issue(user)

    async def authenticate(self, token: Optional[str]) -> SessionContext:
        """
        Resolve a bearer token into a session.

        Raises:
            UnauthenticatedException: If the token is missing, unknown,
                expired, or its user is gone or inactive
        """
        if not token:
            raise UnauthenticatedException()

        user_id = await self._tokens.get_user_id(token, datetime.now(timezone.utc))
        user = await self._users.get_by_id(user_id) if user_id else None
        if not user or not user.is_active:
            raise UnauthenticatedException("Invalid or expired token")

        return user.to_session(token)

    async def change_password(
        self,
        session: SessionContext,
        current_password: str,
        new_password: str
    ) -> None:
        """
        Replace the signed-in user's password.

        Raises:
            ValidationException: If the current password is wrong or the
                new one is too short
        """
        password_hash = await self._users.get_password_hash(session.user_id)
        if not password_hash or not self._hasher.verify(current_password, password_hash):
            raise ValidationException("Current password is incorrect", {"field": "current_password"})

        _validate_password(new_password)
        await self._users.set_password_hash(session.user_id, self._hasher.hash(new_password))
        logger.info("Password changed", extra={"user_id": session.user_id})

    async def issue_password_reset(self, user: User) -> PasswordResetGrant:
        """
        Mint a reset token for `user`, replacing any outstanding one.

        Callers authorize the request; see UserService.authorize_password_reset.
        """
        resets = self._require_resets()
        await resets.revoke_for_user(user.id)

        token = secrets.token_urlsafe(32)
        expires_at = datetime.now(timezone.utc) + self._reset_ttl
        await resets.create(_digest(token), user.id, expires_at)
        logger.info("Password reset issued", extra={"user_id": user.id})
        return PasswordResetGrant(token=token, expires_at=expires_at, user=user)

    async def reset_password(self, email: str, token: str, new_password: str) -> None:
        """
        Set a new password with a reset token.

        The token is consumed and every bearer token of the user is
        revoked, so other signed-in devices must log in again.

        Raises:
            ValidationException: If the token does not belong to the
                email, has expired or was already used, the account is
                inactive, or the new password is too short
        """
        resets = self._require_resets()
        user = await self._users.get_by_email(email.strip().lower())
        owner_id = await resets.get_user_id(_digest(token), datetime.now(timezone.utc)) if user else None
        if not user or owner_id != user.id or not user.is_active:
            logger.info("Password reset rejected", extra={"email": email})
            raise ValidationException("Invalid or expired reset link", {"field": "token"})

        _validate_password(new_password)
        await self._users.set_password_hash(user.id, self._hasher.hash(new_password))
        await resets.revoke_for_user(user.id)
        await self._tokens.revoke_for_user(user.id)
        logger.info("Password reset completed", extra={"user_id": user.id})

    def _require_resets(self) -> IPasswordResetRepository:
        if self._resets is None:
            raise ValidationException("Password reset not configured")
        return self._resets

    async def _issue(self, user: User) -> AuthResult:
        token = secrets.token_urlsafe(32)
        expires_at = datetime.now(timezone.utc) + self._ttl
        await self._tokens.create(token, user.id, expires_at)
        return AuthResult(token=token, expires_at=expires_at, user=user)


class UserService:
    """
    Service for the user directory.

    Administration requires the Users area (Admin, Super Admin) and a
    strictly higher rank than the target user.

    A user who can no longer take tickets loses their assignments first.
    """

    def __init__(
        self,
        user_repository: IUserRepository,
        token_repository: ISessionTokenRepository,
        hasher: Optional[IPasswordHasher] = None,
        assignments: Optional[IAssignmentReleaser] = None
    ):
        self._users = user_repository
        self._tokens = token_repository
        self._hasher = hasher
        self._assignments = assignments

    async def get(self, user_id: str) -> User:
        user = await self._users.get_by_id(user_id)
        if not user:
            raise ResourceNotFoundException("User", user_id)
        return user

    async def list_users(self, session: SessionContext, staff_only: bool = False) -> List[User]:
        """
        List the directory.

        Staff may list staff (the assignee picker); the full directory
        needs the Users area.
        """
        if staff_only:
            if not session.is_staff:
                raise ForbiddenException("list staff users", session.role)
            return await self._users.list(roles=[r for r in Role if RolePolicy.is_staff(r)])

        if not RolePolicy.can_view_route(session.role, RouteId.USERS):
            raise ForbiddenException(Action.MANAGE_USERS.value, session.role)
        return await self._users.list()

    async def update_profile(self, session: SessionContext, request: ProfileUpdateRequest) -> User:
        """Change the signed-in user's own name/department."""
        user = await self.get(session.user_id)
        if request.name is not None:
            user.name = request.name or None
        if request.department is not None:
            user.department = request.department or None
        return await self._users.update(user)

    async def create_user(self, session: SessionContext, request: UserCreateRequest) -> User:
        """
        Create an account with an explicit role.

        Raises:
            ForbiddenException: If the actor does not outrank the new role
            ConflictException: If the email is already registered
        """
        self._require_admin(session)
        if not RolePolicy.can_manage_user(session.role, request.role):
            raise ForbiddenException(f"create {request.role.value} users", session.role)
        if self._hasher is None:
            raise ValidationException("Password hashing not configured")

        _validate_password(request.password)
        if await self._users.get_by_email(request.email):
            raise ConflictException("Email already registered", {"email": request.email})

        user = User(
            id=str(uuid4()),
            email=request.email,
            role=request.role,
            name=request.name,
            department=request.department,
        )
        user = await self._users.create(user, self._hasher.hash(request.password))
        logger.info("User created", extra={"user_id": user.id, "actor_id": session.user_id})
        return user

    async def update_user(self, session: SessionContext, user_id: str, request: UserUpdateRequest) -> User:
        """
        Change another user's role, name or department.

        Demoting staff to Customer first unassigns their tickets.
        """
        user = await self._managed_target(session, user_id)
        if request.role is not None and request.role != user.role:
            if not RolePolicy.can_manage_user(session.role, request.role):
                raise ForbiddenException(f"grant the {request.role.value} role", session.role)
            if user.is_staff and not RolePolicy.is_staff(request.role):
                await self._release_assignments(session, user)
            user.role = request.role
        if request.name is not None:
            user.name = request.name or None
        if request.department is not None:
            user.department = request.department or None
        return await self._users.update(user)

    async def toggle_status(self, session: SessionContext, user_id: str) -> User:
        """
        Flip Active/Inactive.

        Deactivation unassigns the user's tickets and revokes their tokens.
        """
        user = await self._managed_target(session, user_id)
        if user.is_active:
            await self._release_assignments(session, user)
        user.toggle_status()
        user = await self._users.update(user)
        if not user.is_active:
            await self._tokens.revoke_for_user(user.id)
        logger.info(
            "User status changed",
            extra={"user_id": user.id, "status": user.status.value, "actor_id": session.user_id}
        )
        return user

    async def delete_user(self, session: SessionContext, user_id: str) -> None:
        user = await self._managed_target(session, user_id)
        await self._release_assignments(session, user)
        await self._tokens.revoke_for_user(user.id)
        await self._users.delete(user.id)
        logger.info("User deleted", extra={"user_id": user.id, "actor_id": session.user_id})

    async def authorize_password_reset(self, session: SessionContext, user_id: str) -> User:
        """
        Target of an admin-issued reset link.

        Raises:
            ForbiddenException: If the actor does not outrank the user
            ResourceNotFoundException: If the user does not exist
            ValidationException: If the account is inactive
        """
        user = await self._managed_target(session, user_id)
        if not user.is_active:
            raise ValidationException("Cannot reset the password of an inactive account", {"user_id": user_id})
        logger.info("Password reset authorized", extra={"user_id": user.id, "actor_id": session.user_id})
        return user

    async def _release_assignments(self, session: SessionContext, user: User) -> None:
        if self._assignments is None or not user.is_staff:
            return
        released = await self._assignments.release_assignments(session, user.id)
        if released:
            logger.info(
                "Ticket assignments released",
                extra={"user_id": user.id, "actor_id": session.user_id, "tickets": released}
            )

    def _require_admin(self, session: SessionContext) -> None:
        if not RolePolicy.can_view_route(session.role, RouteId.USERS):
            raise ForbiddenException(Action.MANAGE_USERS.value, session.role)

    async def _managed_target(self, session: SessionContext, user_id: str) -> User:
        self._require_admin(session)
        user = await self.get(user_id)
        if not RolePolicy.can_manage_user(session.role, user.role):
            raise ForbiddenException(f"manage {user.role.value} users", session.role)
        return user
