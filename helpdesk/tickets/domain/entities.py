"""
Ticket Domain Entities
======================

Pure Python domain entities for the ticket lifecycle.

Following Domain-Driven Design principles, these entities contain
business state only; the rules for changing them live in the state
machine.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from helpdesk.config import (
    CLOSED_STATUSES, DEFAULT_CATEGORY, Priority, Role, TicketStatus
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Ticket:
    """
    Ticket entity representing a support request.

    The SLA deadline is not stored; it is derived from created_at.
    """

    # Core attributes
    id: str
    subject: str
    description: str
    created_by: str
    status: TicketStatus = TicketStatus.OPEN
    priority: Priority = Priority.MEDIUM
    category: str = DEFAULT_CATEGORY

    # Timestamps
    created_at: datetime = field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    # Handling
    assigned_agent_id: Optional[str] = None
    time_spent_minutes: Optional[float] = None

    # Customer feedback
    happiness_rating: Optional[int] = None
    customer_feedback: Optional[str] = None

    def __post_init__(self):
        self.status = TicketStatus(self.status)
        self.priority = Priority(self.priority)
        self.category = (self.category or "").strip() or DEFAULT_CATEGORY
        if self.updated_at is None:
            self.updated_at = self.created_at

    @property
    def is_resolved(self) -> bool:
        """Resolved or Closed."""
        return self.status in CLOSED_STATUSES

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "subject": self.subject,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "category": self.category,
            "created_by": self.created_by,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "resolved_at": self.resolved_at,
            "assigned_agent_id": self.assigned_agent_id,
            "time_spent_minutes": self.time_spent_minutes,
            "happiness_rating": self.happiness_rating,
            "customer_feedback": self.customer_feedback,
        }


@dataclass
class Reply:
    """Message on a ticket's conversation. Internal notes are staff-only."""
    id: str
    ticket_id: str
    author_id: str
    author_name: str
    message: str
    is_internal: bool = False
    author_role: Role = Role.CUSTOMER
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class HistoryEntry:
    """
    Append-only record of a single field change.

    Frozen: once written it is never modified.
    """
    ticket_id: str
    actor_name: str
    field: str
    old_value: Optional[str]
    new_value: Optional[str]
    created_at: datetime = field(default_factory=utcnow)
    id: Optional[str] = None


class TicketEventType(str, Enum):
    """Ticket changes that notifications react to."""
    STATUS_CHANGED = "status_changed"
    ASSIGNED = "assigned"
    REPLY_POSTED = "reply_posted"


@dataclass(frozen=True)
class TicketEvent:
    """
    Domain event emitted by the state machine.

    Carries enough of the ticket for notification fan-out without a
    second lookup.
    """
    type: TicketEventType
    ticket_id: str
    ticket_subject: str
    actor_id: str
    actor_name: str
    created_by: str
    assigned_agent_id: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    is_internal: bool = False
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class Attachment:
    """Metadata for an uploaded file; the bytes live in attachment storage."""
    id: str
    ticket_id: str
    filename: str
    original_name: str
    content_type: str
    size_bytes: int
    uploaded_by: str
    created_at: datetime = field(default_factory=utcnow)
