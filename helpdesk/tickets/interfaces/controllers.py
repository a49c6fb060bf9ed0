"""
Ticket Controllers (API Routes)
===============================

FastAPI routes for tickets, their conversation, history, SLA reading
and attachments.

Controllers are thin - they delegate to application services. Ticket
payloads go through the visibility filter, and routes use
response_model_exclude_unset so hidden columns are absent, not null.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.access.domain import SessionContext
from helpdesk.infrastructure.database import get_session
from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.tickets.application import (
    AttachmentService,
    TicketService,
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
from helpdesk.tickets.domain import SLAReading, Ticket
from helpdesk.tickets.infrastructure import (
    LocalAttachmentStorage,
    SQLAlchemyAttachmentRepository,
)
from helpdesk.tickets.infrastructure.wiring import build_ticket_service, get_sla_clock
from helpdesk.users.interfaces import get_current_session

logger = get_logger(__name__)
router = APIRouter(prefix="/tickets", tags=["Tickets"])
attachments_router = APIRouter(prefix="/attachments", tags=["Attachments"])


# ========== Example payloads for Swagger ==========

TICKET_RESPONSE_EXAMPLE = {
    "id": "0f8b7c5e-3c1d-4c36-9d0e-2b7c1d9e4a11",
    "subject": "Cannot connect to VPN",
    "description": "VPN client fails with 'authentication timeout' since this morning.",
    "status": "Open",
    "priority": "High",
    "category": "Network",
    "created_by": "6d1c2a8e-1b7f-4a51-8a4f-1f2e3d4c5b6a",
    "created_at": "2024-01-15T10:00:00Z",
    "updated_at": "2024-01-15T10:00:00Z",
    "resolved_at": None,
    "assigned_agent_id": None,
    "time_spent_minutes": None,
    "happiness_rating": None,
    "customer_feedback": None,
    "sla": {
        "state": "counting",
        "deadline": "2024-01-15T12:00:00Z",
        "remaining_seconds": 5400.0,
        "hours_left": 1,
        "minutes_left": 30,
        "is_urgent": True,
        "label": "1h 30m left"
    }
}


# ========== Dependencies ==========

async def get_ticket_service(
    session: AsyncSession = Depends(get_session)
) -> TicketService:
    """Get ticket service instance with notification fan-out wired in."""
    return build_ticket_service(session)


async def get_attachment_service(
    session: AsyncSession = Depends(get_session),
    ticket_service: TicketService = Depends(get_ticket_service)
) -> AttachmentService:
    """Get attachment service instance."""
    return AttachmentService(
        ticket_service,
        SQLAlchemyAttachmentRepository(session),
        LocalAttachmentStorage()
    )


def sla_response(reading: SLAReading) -> SLAReadingResponse:
    return SLAReadingResponse(
        state=reading.state.value,
        deadline=reading.deadline,
        remaining_seconds=reading.remaining_seconds,
        hours_left=reading.hours_left,
        minutes_left=reading.minutes_left,
        is_urgent=reading.is_urgent,
        label=reading.label
    )


def ticket_response(service: TicketService, session: SessionContext, ticket: Ticket) -> TicketResponse:
    data = service.project(session, ticket)
    data["sla"] = sla_response(data["sla"])
    return TicketResponse(**data)


# ========== Tickets ==========

@router.post(
    "",
    response_model=TicketResponse,
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
    summary="Open a ticket",
    responses={201: {"content": {"application/json": {"example": TICKET_RESPONSE_EXAMPLE}}}}
)
async def create_ticket(
    request: TicketCreateRequest,
    session: SessionContext = Depends(get_current_session),
    service: TicketService = Depends(get_ticket_service)
) -> TicketResponse:
    ticket = await service.create_ticket(session, request)
    return ticket_response(service, session, ticket)


@router.get(
    "",
    response_model=TicketListResponse,
    response_model_exclude_unset=True,
    summary="List tickets",
    description="Customers see tickets they created; staff see all tickets."
)
async def list_tickets(
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = Query(None),
    assigned_to_me: bool = Query(False),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    session: SessionContext = Depends(get_current_session),
    service: TicketService = Depends(get_ticket_service)
) -> TicketListResponse:
    tickets, total = await service.list_tickets(
        session,
        status=status_filter,
        priority=priority,
        assigned_to_me=assigned_to_me,
        limit=limit,
        offset=offset
    )
    return TicketListResponse(
        tickets=[ticket_response(service, session, t) for t in tickets],
        total_count=total
    )


@router.get(
    "/{ticket_id}",
    response_model=TicketResponse,
    response_model_exclude_unset=True,
    summary="Get a ticket",
    responses={200: {"content": {"application/json": {"example": TICKET_RESPONSE_EXAMPLE}}}}
)
async def get_ticket(
    ticket_id: str,
    session: SessionContext = Depends(get_current_session),
    service: TicketService = Depends(get_ticket_service)
) -> TicketResponse:
    ticket = await service.get_ticket(session, ticket_id)
    return ticket_response(service, session, ticket)


@router.patch(
    "/{ticket_id}/status",
    response_model=TicketResponse,
    response_model_exclude_unset=True,
    summary="Change ticket status",
    description="Agent, Manager, Admin and Super Admin only. Every change is written to the history."
)
async def update_status(
    ticket_id: str,
    request: StatusUpdateRequest,
    session: SessionContext = Depends(get_current_session),
    service: TicketService = Depends(get_ticket_service)
) -> TicketResponse:
    ticket = await service.change_status(session, ticket_id, request.status)
    return ticket_response(service, session, ticket)


@router.patch(
    "/{ticket_id}/assign",
    response_model=TicketResponse,
    response_model_exclude_unset=True,
    summary="Assign or unassign a ticket",
    description="Admin and Super Admin only. The assignee must be an active staff user."
)
async def assign_ticket(
    ticket_id: str,
    request: AssignRequest,
    session: SessionContext = Depends(get_current_session),
    service: TicketService = Depends(get_ticket_service)
) -> TicketResponse:
    ticket = await service.assign(session, ticket_id, request.assigned_agent_id)
    return ticket_response(service, session, ticket)


@router.patch(
    "/{ticket_id}/feedback",
    response_model=TicketResponse,
    response_model_exclude_unset=True,
    summary="Rate a resolved ticket"
)
async def record_feedback(
    ticket_id: str,
    request: FeedbackRequest,
    session: SessionContext = Depends(get_current_session),
    service: TicketService = Depends(get_ticket_service)
) -> TicketResponse:
    ticket = await service.record_feedback(
        session, ticket_id, request.happiness_rating, request.customer_feedback
    )
    return ticket_response(service, session, ticket)


@router.post(
    "/{ticket_id}/time",
    response_model=TicketResponse,
    response_model_exclude_unset=True,
    summary="Log time spent on a ticket"
)
async def log_time(
    ticket_id: str,
    request: TimeLogRequest,
    session: SessionContext = Depends(get_current_session),
    service: TicketService = Depends(get_ticket_service)
) -> TicketResponse:
    ticket = await service.log_time(session, ticket_id, request.minutes)
    return ticket_response(service, session, ticket)


@router.get(
    "/{ticket_id}/sla",
    response_model=SLAReadingResponse,
    summary="Current SLA reading for a ticket"
)
async def get_sla(
    ticket_id: str,
    session: SessionContext = Depends(get_current_session),
    service: TicketService = Depends(get_ticket_service)
) -> SLAReadingResponse:
    ticket = await service.get_ticket(session, ticket_id)
    return sla_response(service.sla_reading(ticket))


# ========== Replies & History ==========

@router.get(
    "/{ticket_id}/replies",
    response_model=List[ReplyResponse],
    summary="Ticket conversation",
    description="Internal notes are omitted for Customers."
)
async def list_replies(
    ticket_id: str,
    session: SessionContext = Depends(get_current_session),
    service: TicketService = Depends(get_ticket_service)
) -> List[ReplyResponse]:
    replies = await service.list_replies(session, ticket_id)
    return [ReplyResponse.model_validate(r) for r in replies]


@router.post(
    "/{ticket_id}/replies",
    response_model=ReplyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post a reply or internal note"
)
async def post_reply(
    ticket_id: str,
    request: ReplyCreateRequest,
    session: SessionContext = Depends(get_current_session),
    service: TicketService = Depends(get_ticket_service)
) -> ReplyResponse:
    reply = await service.post_reply(session, ticket_id, request.message, request.is_internal)
    return ReplyResponse.model_validate(reply)


@router.get(
    "/{ticket_id}/history",
    response_model=List[HistoryEntryResponse],
    summary="Append-only change log"
)
async def list_history(
    ticket_id: str,
    session: SessionContext = Depends(get_current_session),
    service: TicketService = Depends(get_ticket_service)
) -> List[HistoryEntryResponse]:
    entries = await service.list_history(session, ticket_id)
    return [HistoryEntryResponse.model_validate(e) for e in entries]


# ========== Attachments ==========

@attachments_router.get(
    "/ticket/{ticket_id}",
    response_model=List[AttachmentResponse],
    summary="Attachments of a ticket"
)
async def list_attachments(
    ticket_id: str,
    session: SessionContext = Depends(get_current_session),
    service: AttachmentService = Depends(get_attachment_service)
) -> List[AttachmentResponse]:
    attachments = await service.list_for_ticket(session, ticket_id)
    return [AttachmentResponse.model_validate(a) for a in attachments]


@attachments_router.post(
    "/{ticket_id}",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload an attachment"
)
async def upload_attachment(
    ticket_id: str,
    file: UploadFile = File(...),
    session: SessionContext = Depends(get_current_session),
    service: AttachmentService = Depends(get_attachment_service)
) -> AttachmentResponse:
    content = await file.read()
    attachment = await service.upload(session, ticket_id, file.filename, file.content_type, content)
    return AttachmentResponse.model_validate(attachment)


@attachments_router.get(
    "/download/{filename}",
    response_class=FileResponse,
    summary="Download an attachment by stored filename"
)
async def download_attachment(
    filename: str,
    session: SessionContext = Depends(get_current_session),
    service: AttachmentService = Depends(get_attachment_service)
) -> FileResponse:
    attachment, path = await service.download(session, filename)
    return FileResponse(path, media_type=attachment.content_type, filename=attachment.original_name)
