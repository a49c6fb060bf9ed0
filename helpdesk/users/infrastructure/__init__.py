"""
User Infrastructure Layer
=========================

Contains:
- Models: SQLAlchemy ORM models (users, session_tokens, password_reset_tokens)
- Repositories: Concrete repository implementations
- Security: passlib password hasher
- Sweeper: interval purge of expired tokens
"""

from helpdesk.users.infrastructure.repositories import (
    SQLAlchemyUserRepository,
    SQLAlchemySessionTokenRepository,
    SQLAlchemyPasswordResetRepository,
)
from helpdesk.users.infrastructure.security import PasslibPasswordHasher
from helpdesk.users.infrastructure.sweeper import ExpiredTokenSweeper

__all__ = [
    "SQLAlchemyUserRepository",
    "SQLAlchemySessionTokenRepository",
    "SQLAlchemyPasswordResetRepository",
    "PasslibPasswordHasher",
    "ExpiredTokenSweeper",
]
