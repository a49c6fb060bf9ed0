"""
Ticket Domain Layer
===================

Contains:
- Entities: Ticket, Reply, HistoryEntry, Attachment, TicketEvent
- TicketStateMachine: Permission-checked, history-logged ticket changes
- SLAClock: Deadline derivation and remaining-time readings

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from helpdesk.tickets.domain.entities import (
    Attachment,
    HistoryEntry,
    Reply,
    Ticket,
    TicketEvent,
    TicketEventType,
)
from helpdesk.tickets.domain.state_machine import TicketStateMachine, TransitionResult
from helpdesk.tickets.domain.sla import SLAClock, SLAConfig, SLAReading, SLAState

__all__ = [
    # Entities
    "Attachment",
    "HistoryEntry",
    "Reply",
    "Ticket",
    "TicketEvent",
    "TicketEventType",
    # State machine
    "TicketStateMachine",
    "TransitionResult",
    # SLA
    "SLAClock",
    "SLAConfig",
    "SLAReading",
    "SLAState",
]
