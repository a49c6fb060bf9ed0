"""
Auth Dependencies
=================

FastAPI dependencies shared by every router: building the auth/user
services and resolving the bearer token into a SessionContext.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.access.domain import SessionContext
from helpdesk.infrastructure.database import get_session
from helpdesk.tickets.infrastructure.wiring import build_ticket_service
from helpdesk.users.application import AuthService, UserService
from helpdesk.users.infrastructure import (
    PasslibPasswordHasher,
    SQLAlchemyPasswordResetRepository,
    SQLAlchemySessionTokenRepository,
    SQLAlchemyUserRepository,
)

bearer_scheme = HTTPBearer(auto_error=False)
_hasher = PasslibPasswordHasher()


async def get_auth_service(
    session: AsyncSession = Depends(get_session)
) -> AuthService:
    """Get auth service instance."""
    return AuthService(
        SQLAlchemyUserRepository(session),
        SQLAlchemySessionTokenRepository(session),
        _hasher,
        reset_repository=SQLAlchemyPasswordResetRepository(session)
    )


async def get_user_service(
    session: AsyncSession = Depends(get_session)
) -> UserService:
    """Get user directory service instance; ticket assignments share the request session."""
    return UserService(
        SQLAlchemyUserRepository(session),
        SQLAlchemySessionTokenRepository(session),
        _hasher,
        assignments=build_ticket_service(session)
    )


async def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service)
) -> SessionContext:
    """
    Resolve the request's bearer token.

    Raises UnauthenticatedException (401) when the header is missing or
    the token does not resolve to an active user.
    """
    token = credentials.credentials if credentials else None
    return await auth_service.authenticate(token)
