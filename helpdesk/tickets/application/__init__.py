"""
Ticket Application Layer
========================

Contains:
- Services: TicketService (lifecycle), AttachmentService (files)
- Repository, storage and event sink interfaces
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from helpdesk.tickets.application.dto import (
    TicketCreateRequest,
    StatusUpdateRequest,
    AssignRequest,
    ReplyCreateRequest,
    FeedbackRequest,
    TimeLogRequest,
    SLAReadingResponse,
    TicketResponse,
    TicketListResponse,
    ReplyResponse,
    HistoryEntryResponse,
    AttachmentResponse,
)
from helpdesk.tickets.application.services import (
    TicketService,
    AttachmentService,
    ITicketRepository,
    IReplyRepository,
    IHistoryRepository,
    IAttachmentRepository,
    IAttachmentStorage,
    ITicketEventSink,
)

__all__ = [
    # DTOs
    "TicketCreateRequest",
    "StatusUpdateRequest",
    "AssignRequest",
    "ReplyCreateRequest",
    "FeedbackRequest",
    "TimeLogRequest",
    "SLAReadingResponse",
    "TicketResponse",
    "TicketListResponse",
    "ReplyResponse",
    "HistoryEntryResponse",
    "AttachmentResponse",
    # Services
    "TicketService",
    "AttachmentService",
    # Interfaces
    "ITicketRepository",
    "IReplyRepository",
    "IHistoryRepository",
    "IAttachmentRepository",
    "IAttachmentStorage",
    "ITicketEventSink",
]
