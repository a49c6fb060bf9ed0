"""
User Infrastructure Repositories
================================

SQLAlchemy implementations of the user, token and reset link repository
interfaces.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.config import Role
from helpdesk.core import RepositoryException
from helpdesk.users.application import (
    IPasswordResetRepository,
    ISessionTokenRepository,
    IUserRepository,
)
from helpdesk.users.domain import User
from helpdesk.users.infrastructure.models import PasswordResetTokenModel, SessionTokenModel, UserModel


def _to_entity(model: UserModel) -> User:
    return User(
        id=model.id,
        email=model.email,
        role=model.role,
        name=model.name,
        department=model.department,
        status=model.status,
        created_at=model.created_at,
    )


class SQLAlchemyUserRepository(IUserRepository):
    """
    SQLAlchemy implementation of user repository.

    Returns domain entities; the password hash only leaves through
    get_password_hash.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _get_model(self, user_id: str) -> Optional[UserModel]:
        return await self._session.get(UserModel, user_id)

    async def get_by_id(self, user_id: str) -> Optional[User]:
        model = await self._get_model(user_id)
        return _to_entity(model) if model else None

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(UserModel).where(UserModel.email == email.strip().lower())
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return _to_entity(model) if model else None

    async def list(self, roles: Optional[List[Role]] = None) -> List[User]:
        stmt = select(UserModel)
        if roles:
            stmt = stmt.where(UserModel.role.in_([role.value for role in roles]))
        stmt = stmt.order_by(UserModel.created_at.asc())

        result = await self._session.execute(stmt)
        return [_to_entity(model) for model in result.scalars().all()]

    async def create(self, user: User, password_hash: str) -> User:
        model = UserModel(
            id=user.id,
            email=user.email,
            password_hash=password_hash,
            name=user.name,
            role=user.role.value,
            department=user.department,
            status=user.status.value,
            created_at=user.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return _to_entity(model)

    async def update(self, user: User) -> User:
        model = await self._get_model(user.id)
        if not model:
            raise RepositoryException(f"User {user.id} not found")

        model.name = user.name
        model.role = user.role.value
        model.department = user.department
        model.status = user.status.value

        await self._session.flush()
        return _to_entity(model)

    async def delete(self, user_id: str) -> None:
        model = await self._get_model(user_id)
        if model:
            await self._session.delete(model)
            await self._session.flush()

    async def get_password_hash(self, user_id: str) -> Optional[str]:
        model = await self._get_model(user_id)
        return model.password_hash if model else None

    async def set_password_hash(self, user_id: str, password_hash: str) -> None:
        model = await self._get_model(user_id)
        if not model:
            raise RepositoryException(f"User {user_id} not found")
        model.password_hash = password_hash
        await self._session.flush()


class SQLAlchemySessionTokenRepository(ISessionTokenRepository):
    """SQLAlchemy implementation of the bearer token store."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, token: str, user_id: str, expires_at: datetime) -> None:
        self._session.add(SessionTokenModel(token=token, user_id=user_id, expires_at=expires_at))
        await self._session.flush()

    async def get_user_id(self, token: str, now: datetime) -> Optional[str]:
        stmt = select(SessionTokenModel.user_id).where(
            SessionTokenModel.token == token,
            SessionTokenModel.expires_at > now,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def revoke_for_user(self, user_id: str) -> int:
        stmt = delete(SessionTokenModel).where(SessionTokenModel.user_id == user_id)
        result = await self._session.execute(stmt)
        return result.rowcount or 0

    async def purge_expired(self, now: datetime) -> int:
        stmt = delete(SessionTokenModel).where(SessionTokenModel.expires_at <= now)
        result = await self._session.execute(stmt)
        return result.rowcount or 0


class SQLAlchemyPasswordResetRepository(IPasswordResetRepository):
    """SQLAlchemy implementation of the reset link store."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, token_digest: str, user_id: str, expires_at: datetime) -> None:
        self._session.add(PasswordResetTokenModel(token_digest=token_digest, user_id=user_id, expires_at=expires_at))
        await self._session.flush()

    async def get_user_id(self, token_digest: str, now: datetime) -> Optional[str]:
        stmt = select(PasswordResetTokenModel.user_id).where(
            PasswordResetTokenModel.token_digest == token_digest,
            PasswordResetTokenModel.expires_at > now,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def revoke_for_user(self, user_id: str) -> int:
        stmt = delete(PasswordResetTokenModel).where(PasswordResetTokenModel.user_id == user_id)
        result = await self._session.execute(stmt)
        return result.rowcount or 0

    async def purge_expired(self, now: datetime) -> int:
        stmt = delete(PasswordResetTokenModel).where(PasswordResetTokenModel.expires_at <= now)
        result = await self._session.execute(stmt)
        return result.rowcount or 0
