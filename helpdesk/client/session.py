"""
Client Session Store
====================

Holds the bearer token and user record returned by login. Optionally
persisted to a JSON file so a CLI session survives restarts.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from helpdesk.access.domain import SessionContext
from helpdesk.core import UnauthenticatedException
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class SessionStore:
    """Token and user record for the signed-in user, if any."""

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path) if path else None
        self._token: Optional[str] = None
        self._user: Optional[Dict[str, Any]] = None
        if self._path and self._path.exists():
            self._load()

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return dict(self._user) if self._user else None

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    def save(self, token: str, user: Dict[str, Any]) -> None:
        self._token = token
        self._user = dict(user)
        self._write()

    def clear(self) -> None:
        self._token = None
        self._user = None
        if self._path and self._path.exists():
            self._path.unlink()

    def session(self) -> SessionContext:
        """
        The signed-in user as a SessionContext.

        Raises:
            UnauthenticatedException: If nobody is signed in
        """
        if not self._token:
            raise UnauthenticatedException()
        return SessionContext.from_record(self._user, self._token)

    def _load(self) -> None:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            # Unreadable store means signed out
            logger.warning("Ignoring unreadable session file", extra={"path": str(self._path), "error": str(e)})
            return
        if isinstance(data, dict) and data.get("token"):
            self._token = data["token"]
            self._user = data.get("user") or None

    def _write(self) -> None:
        if not self._path:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps({"token": self._token, "user": self._user}), encoding="utf-8")
