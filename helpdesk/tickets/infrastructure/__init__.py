"""
Ticket Infrastructure Layer
===========================

Contains:
- Models: SQLAlchemy ORM models
- Repositories: Concrete repository implementations
- Storage: Local attachment storage
- SLA: YAML config provider and the cancellable countdown
"""

from helpdesk.tickets.infrastructure.repositories import (
    SQLAlchemyTicketRepository,
    SQLAlchemyReplyRepository,
    SQLAlchemyHistoryRepository,
    SQLAlchemyAttachmentRepository,
)
from helpdesk.tickets.infrastructure.storage import LocalAttachmentStorage
from helpdesk.tickets.infrastructure.config import YAMLSLAConfigProvider
from helpdesk.tickets.infrastructure.countdown import SLACountdown

__all__ = [
    "SQLAlchemyTicketRepository",
    "SQLAlchemyReplyRepository",
    "SQLAlchemyHistoryRepository",
    "SQLAlchemyAttachmentRepository",
    "LocalAttachmentStorage",
    "YAMLSLAConfigProvider",
    "SLACountdown",
]
