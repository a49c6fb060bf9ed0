"""
Ticket State Machine
====================

Governs every change to a ticket: who may make it, what it does to the
ticket, which HistoryEntry records it and which event it emits.

States: Open (initial) → In-Progress → Resolved → Closed. Any status may
move to any other (skip-forward and re-open are allowed); the machine
restricts who may transition and logs every transition.

Each operation checks all of its preconditions before touching the
ticket, so a failed call leaves the ticket and its history untouched.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional
from uuid import uuid4

from helpdesk.access.domain import Action, RolePolicy, SessionContext
from helpdesk.config import CLOSED_STATUSES, TicketStatus
from helpdesk.core import (
    ForbiddenException,
    InvalidAssigneeException,
    ValidationException,
)
from helpdesk.tickets.domain.entities import (
    HistoryEntry,
    Reply,
    Ticket,
    TicketEvent,
    TicketEventType,
    utcnow,
)

UNASSIGNED = "Unassigned"


@dataclass
class TransitionResult:
    """Outcome of a state machine operation: the ticket plus what to persist/emit."""
    ticket: Ticket
    history: List[HistoryEntry] = field(default_factory=list)
    events: List[TicketEvent] = field(default_factory=list)
    reply: Optional[Reply] = None


def _str(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = getattr(value, "value", value)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


class TicketStateMachine:
    """
    Stateless ticket operations.

    Every method takes the acting SessionContext and an optional `now`
    (defaults to the current UTC time) so results are reproducible.
    """

    @staticmethod
    def parse_status(value: Any) -> TicketStatus:
        """
        Coerce a status value.

        Raises:
            ValidationException: If the value is not a known status
        """
        try:
            return TicketStatus(getattr(value, "value", value))
        except ValueError:
            raise ValidationException(
                f"Unknown ticket status: {value!r}",
                {"allowed": [s.value for s in TicketStatus]}
            )

    @classmethod
    def transition(
        cls,
        ticket: Ticket,
        new_status: Any,
        actor: SessionContext,
        now: Optional[datetime] = None
    ) -> TransitionResult:
        """
        Change the ticket's status.

        A transition to the current status is still recorded.

        Raises:
            ForbiddenException: If the actor's role may not change status
            ValidationException: If new_status is unknown
        """
        if not RolePolicy.can_change_status(actor.role):
            raise ForbiddenException(Action.CHANGE_STATUS.value, actor.role)
        new_status = cls.parse_status(new_status)

        now = now or utcnow()
        old_status = ticket.status

        ticket.status = new_status
        ticket.updated_at = now
        if new_status in CLOSED_STATUSES:
            if old_status not in CLOSED_STATUSES or ticket.resolved_at is None:
                ticket.resolved_at = now
        else:
            ticket.resolved_at = None

        entry = HistoryEntry(
            ticket_id=ticket.id,
            actor_name=actor.display_name,
            field="status",
            old_value=old_status.value,
            new_value=new_status.value,
            created_at=now,
        )
        event = TicketEvent(
            type=TicketEventType.STATUS_CHANGED,
            ticket_id=ticket.id,
            ticket_subject=ticket.subject,
            actor_id=actor.user_id,
            actor_name=actor.display_name,
            created_by=ticket.created_by,
            assigned_agent_id=ticket.assigned_agent_id,
            old_value=old_status.value,
            new_value=new_status.value,
            created_at=now,
        )
        return TransitionResult(ticket=ticket, history=[entry], events=[event])

    @classmethod
    def assign(
        cls,
        ticket: Ticket,
        assignee_id: Optional[str],
        assignee: Optional[Any],
        actor: SessionContext,
        now: Optional[datetime] = None
    ) -> TransitionResult:
        """
        Set or clear the ticket's assigned agent.

        `assignee` is the looked-up user for `assignee_id` (anything with
        `id`, `role` and `is_active`), or None when no such user exists.
        An empty `assignee_id` unassigns.

        The target is validated before the actor, so an invalid target
        reports InvalidAssignee whatever the actor's role.

        Raises:
            InvalidAssigneeException: Unknown, inactive or non-staff target
            ForbiddenException: If the actor's role may not assign
        """
        assignee_id = assignee_id or None
        if assignee_id is not None:
            if assignee is None:
                raise InvalidAssigneeException(assignee_id, "user does not exist")
            if not RolePolicy.is_staff(getattr(assignee, "role", None)):
                raise InvalidAssigneeException(assignee_id, "user does not hold a staff role")
            if not getattr(assignee, "is_active", False):
                raise InvalidAssigneeException(assignee_id, "user is inactive")

        if not RolePolicy.can_assign_agent(actor.role):
            raise ForbiddenException(Action.ASSIGN_AGENT.value, actor.role)

        now = now or utcnow()
        old_agent = ticket.assigned_agent_id

        ticket.assigned_agent_id = assignee_id
        ticket.updated_at = now

        entry = HistoryEntry(
            ticket_id=ticket.id,
            actor_name=actor.display_name,
            field="assigned_agent_id",
            old_value=old_agent or UNASSIGNED,
            new_value=assignee_id or UNASSIGNED,
            created_at=now,
        )
        event = TicketEvent(
            type=TicketEventType.ASSIGNED,
            ticket_id=ticket.id,
            ticket_subject=ticket.subject,
            actor_id=actor.user_id,
            actor_name=actor.display_name,
            created_by=ticket.created_by,
            assigned_agent_id=assignee_id,
            old_value=old_agent,
            new_value=assignee_id,
            created_at=now,
        )
        return TransitionResult(ticket=ticket, history=[entry], events=[event])

    @classmethod
    def reply(
        cls,
        ticket: Ticket,
        actor: SessionContext,
        message: str,
        is_internal: bool = False,
        now: Optional[datetime] = None
    ) -> TransitionResult:
        """
        Post a reply or internal note.

        The reply itself is the conversation record, so no HistoryEntry
        is written.

        Raises:
            ValidationException: If the message is blank
            ForbiddenException: If a non-staff role posts an internal note
        """
        message = (message or "").strip()
        if not message:
            raise ValidationException("Reply message cannot be empty", {"field": "message"})
        if is_internal and not RolePolicy.is_allowed(actor.role, Action.POST_INTERNAL_NOTE):
            raise ForbiddenException(Action.POST_INTERNAL_NOTE.value, actor.role)
        if not RolePolicy.is_allowed(actor.role, Action.POST_REPLY):
            raise ForbiddenException(Action.POST_REPLY.value, actor.role)

        now = now or utcnow()
        ticket.updated_at = now

        reply = Reply(
            id=str(uuid4()),
            ticket_id=ticket.id,
            author_id=actor.user_id,
            author_name=actor.display_name,
            author_role=actor.role,
            message=message,
            is_internal=bool(is_internal),
            created_at=now,
        )
        event = TicketEvent(
            type=TicketEventType.REPLY_POSTED,
            ticket_id=ticket.id,
            ticket_subject=ticket.subject,
            actor_id=actor.user_id,
            actor_name=actor.display_name,
            created_by=ticket.created_by,
            assigned_agent_id=ticket.assigned_agent_id,
            is_internal=reply.is_internal,
            created_at=now,
        )
        return TransitionResult(ticket=ticket, events=[event], reply=reply)

    @classmethod
    def record_feedback(
        cls,
        ticket: Ticket,
        actor: SessionContext,
        rating: int,
        feedback: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> TransitionResult:
        """
        Store the creator's happiness rating and comment.

        Raises:
            ForbiddenException: If the actor did not create the ticket
            ValidationException: If the ticket is not Resolved/Closed or the
                rating is outside 1-5
        """
        if actor.user_id != ticket.created_by:
            raise ForbiddenException(Action.RATE_TICKET.value, actor.role, {"reason": "not the ticket creator"})
        if not ticket.is_resolved:
            raise ValidationException(
                "Feedback can only be given on resolved or closed tickets",
                {"status": ticket.status.value}
            )
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationException("Rating must be an integer from 1 to 5", {"field": "rating"})

        now = now or utcnow()
        feedback = (feedback or "").strip() or None
        history = []
        for field_name, new_value in (("happiness_rating", rating), ("customer_feedback", feedback)):
            old_value = getattr(ticket, field_name)
            if old_value == new_value:
                continue
            setattr(ticket, field_name, new_value)
            history.append(HistoryEntry(
                ticket_id=ticket.id,
                actor_name=actor.display_name,
                field=field_name,
                old_value=_str(old_value),
                new_value=_str(new_value),
                created_at=now,
            ))

        if history:
            ticket.updated_at = now
        return TransitionResult(ticket=ticket, history=history)

    @classmethod
    def log_time(
        cls,
        ticket: Ticket,
        actor: SessionContext,
        minutes: float,
        now: Optional[datetime] = None
    ) -> TransitionResult:
        """
        Add worked minutes to the ticket's accumulator.

        Raises:
            ForbiddenException: If the actor is not staff
            ValidationException: If minutes is not positive
        """
        if not RolePolicy.is_allowed(actor.role, Action.LOG_TIME):
            raise ForbiddenException(Action.LOG_TIME.value, actor.role)
        if isinstance(minutes, bool) or not isinstance(minutes, (int, float)) or minutes <= 0:
            raise ValidationException("Logged minutes must be positive", {"field": "minutes"})

        now = now or utcnow()
        old_total = ticket.time_spent_minutes
        ticket.time_spent_minutes = (old_total or 0) + minutes
        ticket.updated_at = now

        entry = HistoryEntry(
            ticket_id=ticket.id,
            actor_name=actor.display_name,
            field="time_spent_minutes",
            old_value=_str(old_total or 0),
            new_value=_str(ticket.time_spent_minutes),
            created_at=now,
        )
        return TransitionResult(ticket=ticket, history=[entry])
