"""
Notification Fan-out Rules
==========================

Decides who hears about a ticket event and what they are told.

- Status change: the ticket creator and the assigned agent
- Reply: the ticket creator and the assigned agent; internal notes
  never reach a Customer
- Assignment: the newly assigned agent

The acting user is never notified of their own action.
"""

from dataclasses import dataclass
from typing import Any, List, Mapping

from helpdesk.access.domain import RolePolicy
from helpdesk.tickets.domain import TicketEvent, TicketEventType


@dataclass(frozen=True)
class PlannedNotification:
    recipient_id: str
    message: str
    ticket_id: str


class NotificationRules:
    """Stateless mapping from ticket events to planned notifications."""

    @staticmethod
    def candidates(event: TicketEvent) -> List[str]:
        """Users associated with the event, before role and actor filtering."""
        if event.type == TicketEventType.ASSIGNED:
            return [event.assigned_agent_id] if event.assigned_agent_id else []
        return [uid for uid in (event.created_by, event.assigned_agent_id) if uid]

    @staticmethod
    def message_for(event: TicketEvent) -> str:
        subject = event.ticket_subject
        if event.type == TicketEventType.STATUS_CHANGED:
            return f"Ticket '{subject}' status changed from {event.old_value} to {event.new_value}"
        if event.type == TicketEventType.ASSIGNED:
            return f"You have been assigned ticket '{subject}'"
        if event.is_internal:
            return f"{event.actor_name} added an internal note on ticket '{subject}'"
        return f"{event.actor_name} replied on ticket '{subject}'"

    @classmethod
    def plan(cls, event: TicketEvent, roles: Mapping[str, Any]) -> List[PlannedNotification]:
        """
        Notifications to create for one event.

        `roles` maps candidate user IDs to their roles; users missing from
        it are treated as Customers.
        """
        message = cls.message_for(event)
        planned = []
        seen = set()
        for recipient_id in cls.candidates(event):
            if recipient_id in seen or recipient_id == event.actor_id:
                continue
            seen.add(recipient_id)
            if event.is_internal and not RolePolicy.is_staff(roles.get(recipient_id)):
                continue
            planned.append(PlannedNotification(recipient_id, message, event.ticket_id))
        return planned
