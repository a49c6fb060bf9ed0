"""
Notification Module
===================

Bounded Context for per-user notification feeds.

Responsibilities:
- Fan ticket events (status change, reply, assignment) out to the
  users associated with the ticket
- Newest-first feeds with unread counts
- Idempotent mark-read
"""
