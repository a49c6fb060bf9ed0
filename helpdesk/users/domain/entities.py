"""
User Domain Entities
====================

Pure Python entity for the user directory. Credentials never live on
the entity; they stay in the infrastructure layer.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from helpdesk.access.domain import RolePolicy, SessionContext
from helpdesk.config import Role, UserStatus


@dataclass
class User:
    """
    User entity.

    Role is always a resolved Role member; unknown stored values load as
    Customer.
    """
    id: str
    email: str
    role: Role = Role.CUSTOMER
    name: Optional[str] = None
    department: Optional[str] = None
    status: UserStatus = UserStatus.ACTIVE
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        self.role = RolePolicy.resolve_role(self.role)
        self.status = UserStatus(self.status)
        self.email = self.email.strip().lower()

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    @property
    def is_staff(self) -> bool:
        return RolePolicy.is_staff(self.role)

    @property
    def display_name(self) -> str:
        return self.name or self.email

    def toggle_status(self) -> UserStatus:
        """Flip Active/Inactive and return the new status."""
        self.status = UserStatus.INACTIVE if self.is_active else UserStatus.ACTIVE
        return self.status

    def to_session(self, token: Optional[str] = None) -> SessionContext:
        return SessionContext(
            user_id=self.id,
            email=self.email,
            role=self.role,
            name=self.name,
            token=token,
        )
