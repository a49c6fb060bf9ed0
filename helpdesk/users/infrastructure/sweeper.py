"""
Expired Token Sweeper
=====================

Server-side interval job that deletes bearer tokens and reset links
past their expiry. Expired rows are already ignored on lookup; the
sweep only keeps the tables small.
"""

from datetime import datetime, timezone
from typing import Any, AsyncContextManager, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.config import settings
from helpdesk.infrastructure.database import session_scope
from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.shared.infrastructure.scheduler import PeriodicTask
from helpdesk.users.infrastructure.repositories import (
    SQLAlchemyPasswordResetRepository,
    SQLAlchemySessionTokenRepository,
)

logger = get_logger(__name__)


class ExpiredTokenSweeper:
    """Purges expired session and reset tokens on an interval."""

    def __init__(
        self,
        scheduler: Any,
        session_factory: Callable[[], AsyncContextManager[AsyncSession]] = session_scope,
        interval_seconds: Optional[float] = None
    ):
        self._session_factory = session_factory
        self._task = PeriodicTask(
            scheduler,
            self.sweep,
            interval_seconds or settings.token_sweep_interval_seconds,
            name="token-sweeper",
        )

    def start(self) -> None:
        self._task.start(run_immediately=False)

    def stop(self) -> None:
        self._task.stop()

    @property
    def is_running(self) -> bool:
        return self._task.is_running

    async def sweep(self, now: Optional[datetime] = None) -> int:
        """Run one purge. A database failure is logged and retried next tick."""
        now = now or datetime.now(timezone.utc)
        try:
            async with self._session_factory() as session:
                sessions = await SQLAlchemySessionTokenRepository(session).purge_expired(now)
                resets = await SQLAlchemyPasswordResetRepository(session).purge_expired(now)
        except SQLAlchemyError as e:
            logger.warning("Token sweep failed", extra={"error": str(e)})
            return 0

        if sessions or resets:
            logger.info(
                "Expired tokens removed",
                extra={"expired_sessions": sessions, "expired_resets": resets}
            )
        return sessions + resets
