"""
Notification Domain Entities
============================

Notification entity and the feed queries over a list of them.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional


@dataclass
class Notification:
    """
    Notification for a single recipient.

    The only transition is unread → read; it is never reopened.
    """
    id: str
    recipient_id: str
    message: str
    ticket_id: Optional[str] = None
    is_read: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    read_at: Optional[datetime] = None

    def mark_read(self, now: Optional[datetime] = None) -> bool:
        """
        Mark as read.

        Returns True if the state changed; a second call is a no-op.
        """
        if self.is_read:
            return False
        self.is_read = True
        self.read_at = now or datetime.now(timezone.utc)
        return True


class NotificationFeed:
    """
    Queries over a candidate set of notifications.

    Every call recomputes from its input; nothing is cached.
    """

    @staticmethod
    def newest_first(items: Iterable[Notification]) -> List[Notification]:
        return sorted(items or [], key=lambda n: n.created_at, reverse=True)

    @staticmethod
    def unread(items: Iterable[Notification]) -> List[Notification]:
        return [n for n in (items or []) if not n.is_read]

    @staticmethod
    def unread_count(items: Iterable[Notification]) -> int:
        return sum(1 for n in (items or []) if not n.is_read)
