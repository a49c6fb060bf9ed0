"""
Ticket Application Services
===========================

Application services orchestrate the ticket state machine, the SLA
clock and the visibility filter, and coordinate with repositories.

Following SOLID principles:
- Single Responsibility: TicketService owns ticket/reply/history flows,
  AttachmentService owns file metadata
- Dependency Inversion: Depend on abstractions (repositories, event
  sink, storage), not concrete implementations
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

from helpdesk.access.domain import Action, RolePolicy, SessionContext, VisibilityFilter
from helpdesk.config import settings
from helpdesk.core import ForbiddenException, ResourceNotFoundException, ValidationException
from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.tickets.application.dto import TicketCreateRequest
from helpdesk.tickets.domain import (
    Attachment,
    HistoryEntry,
    Reply,
    SLAClock,
    SLAReading,
    Ticket,
    TicketEvent,
    TicketStateMachine,
    TransitionResult,
)
from helpdesk.users.application import IAssignmentReleaser, IUserRepository

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class ITicketRepository(ABC):
    """Interface for ticket data access."""

    @abstractmethod
    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by ID."""

    @abstractmethod
    async def create(self, ticket: Ticket) -> Ticket:
        """Persist a new ticket."""

    @abstractmethod
    async def update(self, ticket: Ticket) -> Ticket:
        """Persist changes to an existing ticket."""

    @abstractmethod
    async def list(
        self,
        filters: dict,
        limit: int = 100,
        offset: int = 0
    ) -> List[Ticket]:
        """
        List tickets newest first.

        Supported filters: status, priority, created_by,
        assigned_agent_id, created_since.
        """

    @abstractmethod
    async def count(self, filters: dict) -> int:
        """Count tickets matching the same filters as list()."""


class IReplyRepository(ABC):
    """Interface for ticket conversation data access."""

    @abstractmethod
    async def create(self, reply: Reply) -> Reply:
        """Persist a reply."""

    @abstractmethod
    async def list_by_ticket(self, ticket_id: str) -> List[Reply]:
        """Replies oldest first."""


class IHistoryRepository(ABC):
    """
    Interface for the append-only ticket history.

    There is deliberately no update or delete.
    """

    @abstractmethod
    async def append(self, entries: List[HistoryEntry]) -> None:
        """Append history entries."""

    @abstractmethod
    async def list_by_ticket(self, ticket_id: str) -> List[HistoryEntry]:
        """History oldest first."""


class IAttachmentRepository(ABC):
    """Interface for attachment metadata."""

    @abstractmethod
    async def create(self, attachment: Attachment) -> Attachment:
        """Persist attachment metadata."""

    @abstractmethod
    async def list_by_ticket(self, ticket_id: str) -> List[Attachment]:
        """Attachments of a ticket, oldest first."""

    @abstractmethod
    async def get_by_filename(self, filename: str) -> Optional[Attachment]:
        """Look up by stored filename."""


class IAttachmentStorage(ABC):
    """Interface for attachment bytes."""

    @abstractmethod
    async def save(self, filename: str, content: bytes) -> None:
        """Store file content under filename."""

    @abstractmethod
    def path_for(self, filename: str) -> Path:
        """Local path of a stored file."""


class ITicketEventSink(ABC):
    """Receiver of ticket domain events (notification fan-out)."""

    @abstractmethod
    async def publish(self, events: List[TicketEvent]) -> None:
        """Handle events emitted by a ticket change."""


# ========== Application Services ==========

class TicketService(IAssignmentReleaser):
    """
    Service for the ticket lifecycle.

    Row scope: Customers only ever see tickets they created; a ticket
    outside the caller's scope is reported as not found.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        reply_repository: IReplyRepository,
        history_repository: IHistoryRepository,
        user_repository: IUserRepository,
        event_sink: Optional[ITicketEventSink] = None,
        sla_clock: Optional[SLAClock] = None
    ):
        self._tickets = ticket_repository
        self._replies = reply_repository
        self._history = history_repository
        self._users = user_repository
        self._events = event_sink
        self._sla = sla_clock or SLAClock()

    @property
    def sla_clock(self) -> SLAClock:
        return self._sla

    # ----- reads -----

    async def get_ticket(self, session: SessionContext, ticket_id: str) -> Ticket:
        """
        Fetch a ticket within the caller's scope.

        Raises:
            ResourceNotFoundException: If missing or out of scope
        """
        ticket = await self._tickets.get_by_id(ticket_id)
        if not ticket or not self._in_scope(session, ticket):
            raise ResourceNotFoundException("Ticket", ticket_id)
        return ticket

    async def list_tickets(
        self,
        session: SessionContext,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        assigned_to_me: bool = False,
        limit: int = 100,
        offset: int = 0
    ) -> tuple[List[Ticket], int]:
        """List tickets in the caller's scope, newest first, with the total count."""
        filters: Dict[str, Any] = {}
        if status:
            filters["status"] = TicketStateMachine.parse_status(status)
        if priority:
            filters["priority"] = priority
        if not session.is_staff:
            filters["created_by"] = session.user_id
        elif assigned_to_me:
            filters["assigned_agent_id"] = session.user_id

        tickets = await self._tickets.list(filters, limit=limit, offset=offset)
        total = await self._tickets.count(filters)
        return tickets, total

    async def list_replies(self, session: SessionContext, ticket_id: str) -> List[Reply]:
        """Conversation with internal notes removed for Customers."""
        await self.get_ticket(session, ticket_id)
        replies = await self._replies.list_by_ticket(ticket_id)
        return VisibilityFilter.replies(session.role, replies)

    async def list_history(self, session: SessionContext, ticket_id: str) -> List[HistoryEntry]:
        """History with changes to hidden columns removed for Customers."""
        await self.get_ticket(session, ticket_id)
        entries = await self._history.list_by_ticket(ticket_id)
        hidden = VisibilityFilter.ticket_fields(session.role)
        return [entry for entry in entries if entry.field not in hidden]

    def sla_reading(self, ticket: Ticket, now: Optional[datetime] = None) -> SLAReading:
        return self._sla.reading_for(ticket.created_at, now or datetime.now(timezone.utc))

    def project(self, session: SessionContext, ticket: Ticket, now: Optional[datetime] = None) -> dict:
        """Ticket as a mapping with the role's hidden columns removed and the SLA reading attached."""
        data = VisibilityFilter.project_ticket(session.role, ticket.to_dict())
        data["sla"] = self.sla_reading(ticket, now)
        return data

    # ----- writes -----

    async def create_ticket(self, session: SessionContext, request: TicketCreateRequest) -> Ticket:
        if not RolePolicy.is_allowed(session.role, Action.CREATE_TICKET):
            raise ForbiddenException(Action.CREATE_TICKET.value, session.role)

        ticket = Ticket(
            id=str(uuid4()),
            subject=request.subject.strip(),
            description=request.description.strip(),
            created_by=session.user_id,
            priority=request.priority,
            category=request.category,
        )
        if not ticket.subject or not ticket.description:
            raise ValidationException("Subject and description are required")

        ticket = await self._tickets.create(ticket)
        logger.info(
            "Ticket created",
            extra={"ticket_id": ticket.id, "actor_id": session.user_id, "priority": ticket.priority.value}
        )
        return ticket

    async def change_status(self, session: SessionContext, ticket_id: str, new_status: str) -> Ticket:
        ticket = await self.get_ticket(session, ticket_id)
        result = TicketStateMachine.transition(ticket, new_status, session)
        await self._apply(result)
        logger.info(
            "Ticket status changed",
            extra={"ticket_id": ticket.id, "actor_id": session.user_id, "new_status": ticket.status.value}
        )
        return result.ticket

    async def assign(self, session: SessionContext, ticket_id: str, assignee_id: Optional[str]) -> Ticket:
        ticket = await self.get_ticket(session, ticket_id)
        assignee = await self._users.get_by_id(assignee_id) if assignee_id else None
        result = TicketStateMachine.assign(ticket, assignee_id, assignee, session)
        await self._apply(result)
        logger.info(
            "Ticket assigned",
            extra={"ticket_id": ticket.id, "actor_id": session.user_id, "assignee_id": assignee_id}
        )
        return result.ticket

    async def post_reply(
        self,
        session: SessionContext,
        ticket_id: str,
        message: str,
        is_internal: bool = False
    ) -> Reply:
        ticket = await self.get_ticket(session, ticket_id)
        result = TicketStateMachine.reply(ticket, session, message, is_internal)
        await self._apply(result)
        return result.reply

    async def record_feedback(
        self,
        session: SessionContext,
        ticket_id: str,
        rating: int,
        feedback: Optional[str] = None
    ) -> Ticket:
        ticket = await self.get_ticket(session, ticket_id)
        result = TicketStateMachine.record_feedback(ticket, session, rating, feedback)
        await self._apply(result)
        return result.ticket

    async def log_time(self, session: SessionContext, ticket_id: str, minutes: float) -> Ticket:
        ticket = await self.get_ticket(session, ticket_id)
        result = TicketStateMachine.log_time(ticket, session, minutes)
        await self._apply(result)
        return result.ticket

    async def release_assignments(self, session: SessionContext, user_id: str) -> int:
        """Unassign every ticket held by `user_id`, each with its own history entry."""
        filters = {"assigned_agent_id": user_id}
        total = await self._tickets.count(filters)
        if not total:
            return 0

        tickets = await self._tickets.list(filters, limit=total)
        for ticket in tickets:
            await self._apply(TicketStateMachine.assign(ticket, None, None, session))
        return len(tickets)

    # ----- helpers -----

    @staticmethod
    def _in_scope(session: SessionContext, ticket: Ticket) -> bool:
        return session.is_staff or ticket.created_by == session.user_id

    async def _apply(self, result: TransitionResult) -> None:
        """Persist a state machine result, then hand its events to the sink."""
        await self._tickets.update(result.ticket)
        if result.reply is not None:
            await self._replies.create(result.reply)
        if result.history:
            await self._history.append(result.history)

        if self._events is None or not result.events:
            return
        try:
            await self._events.publish(result.events)
        except Exception as e:
            # Notification failures never undo a ticket change
            logger.error(
                f"Failed to publish ticket events: {e}",
                extra={"ticket_id": result.ticket.id}
            )


class AttachmentService:
    """
    Service for ticket attachments.

    Access follows the owning ticket: if the caller can see the ticket,
    they can list, upload and download its files.
    """

    def __init__(
        self,
        ticket_service: TicketService,
        attachment_repository: IAttachmentRepository,
        storage: IAttachmentStorage,
        max_upload_bytes: Optional[int] = None
    ):
        self._tickets = ticket_service
        self._attachments = attachment_repository
        self._storage = storage
        self._max_bytes = max_upload_bytes or settings.max_upload_bytes

    async def list_for_ticket(self, session: SessionContext, ticket_id: str) -> List[Attachment]:
        await self._tickets.get_ticket(session, ticket_id)
        return await self._attachments.list_by_ticket(ticket_id)

    async def upload(
        self,
        session: SessionContext,
        ticket_id: str,
        original_name: str,
        content_type: Optional[str],
        content: bytes
    ) -> Attachment:
        """
        Store a file against a ticket.

        Raises:
            ValidationException: If the file is empty or too large
        """
        await self._tickets.get_ticket(session, ticket_id)
        if not content:
            raise ValidationException("Uploaded file is empty")
        if len(content) > self._max_bytes:
            raise ValidationException(
                "Uploaded file is too large",
                {"size_bytes": len(content), "max_bytes": self._max_bytes}
            )

        original_name = Path(original_name or "upload").name
        filename = f"{uuid4().hex}{Path(original_name).suffix.lower()}"
        await self._storage.save(filename, content)

        attachment = Attachment(
            id=str(uuid4()),
            ticket_id=ticket_id,
            filename=filename,
            original_name=original_name,
            content_type=content_type or "application/octet-stream",
            size_bytes=len(content),
            uploaded_by=session.user_id,
        )
        attachment = await self._attachments.create(attachment)
        logger.info(
            "Attachment uploaded",
            extra={"ticket_id": ticket_id, "attachment_id": attachment.id, "size_bytes": attachment.size_bytes}
        )
        return attachment

    async def download(self, session: SessionContext, filename: str) -> tuple[Attachment, Path]:
        """
        Resolve a stored filename to its metadata and local path.

        Raises:
            ResourceNotFoundException: If unknown, out of scope, or missing on disk
        """
        attachment = await self._attachments.get_by_filename(filename)
        if not attachment:
            raise ResourceNotFoundException("Attachment", filename)
        await self._tickets.get_ticket(session, attachment.ticket_id)

        path = self._storage.path_for(attachment.filename)
        exists = await asyncio.to_thread(path.is_file)
        if not exists:
            raise ResourceNotFoundException("Attachment", filename)
        return attachment, path
