"""
Notification Application DTOs
=============================
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    message: str
    ticket_id: Optional[str] = None
    is_read: bool
    created_at: datetime
    read_at: Optional[datetime] = None


class NotificationFeedResponse(BaseModel):
    """Feed newest first plus its unread count."""
    notifications: List[NotificationResponse]
    unread_count: int
