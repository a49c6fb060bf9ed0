"""
Ticket Lifecycle Module
=======================

Bounded Context for support tickets.

Responsibilities:
- Create, list and fetch tickets scoped to the requesting role
- Status transitions, assignment, replies, feedback and time logging
  through the ticket state machine, each logged to the history
- SLA deadline derivation and countdown readings
- Attachment upload/download metadata
"""
