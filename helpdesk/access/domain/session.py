"""
Session Context
===============

Explicit record of who is making a request. Built once per request (or
once per client session) and passed into policy and visibility calls.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from helpdesk.access.domain.policy import RolePolicy
from helpdesk.config import Role
from helpdesk.core import UnauthenticatedException


@dataclass(frozen=True)
class SessionContext:
    """Authenticated actor: the sole input to Role Policy and Visibility Filter."""
    user_id: str
    email: str
    role: Role
    name: Optional[str] = None
    token: Optional[str] = None

    @property
    def is_staff(self) -> bool:
        return RolePolicy.is_staff(self.role)

    @property
    def display_name(self) -> str:
        """Name used in history entries and reply bylines."""
        return self.name or self.email

    @classmethod
    def from_record(cls, record: Optional[Mapping[str, Any]], token: Optional[str] = None) -> "SessionContext":
        """
        Build a session from a persisted user record.

        A missing or corrupt record (no id or email) is unauthenticated.
        An unknown role is downgraded to Customer.

        Raises:
            UnauthenticatedException: If the record is unusable
        """
        if not isinstance(record, Mapping):
            raise UnauthenticatedException("Session record missing")

        user_id = record.get("id")
        email = record.get("email")
        if not user_id or not isinstance(email, str) or not email:
            raise UnauthenticatedException("Session record corrupt")

        return cls(
            user_id=str(user_id),
            email=email,
            role=RolePolicy.resolve_role(record.get("role")),
            name=record.get("name") or None,
            token=token,
        )

    def to_record(self) -> dict:
        return {
            "id": self.user_id,
            "email": self.email,
            "role": self.role.value,
            "name": self.name,
        }
