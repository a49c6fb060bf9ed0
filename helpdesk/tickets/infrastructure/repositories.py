"""
Ticket Infrastructure Repositories
==================================

Concrete implementations of repository interfaces using SQLAlchemy.

This layer contains the data access logic - how we store and retrieve
tickets, replies, history and attachment metadata.
"""

from typing import Any, List, Optional

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.core import RepositoryException
from helpdesk.tickets.application import (
    IAttachmentRepository,
    IHistoryRepository,
    IReplyRepository,
    ITicketRepository,
)
from helpdesk.tickets.domain import Attachment, HistoryEntry, Reply, Ticket
from helpdesk.tickets.infrastructure.models import (
    AttachmentModel,
    HistoryEntryModel,
    ReplyModel,
    TicketModel,
)


def _value(item: Any) -> Any:
    return getattr(item, "value", item)


def _ticket_entity(model: TicketModel) -> Ticket:
    return Ticket(
        id=model.id,
        subject=model.subject,
        description=model.description,
        created_by=model.created_by,
        status=model.status,
        priority=model.priority,
        category=model.category,
        created_at=model.created_at,
        updated_at=model.updated_at,
        resolved_at=model.resolved_at,
        assigned_agent_id=model.assigned_agent_id,
        time_spent_minutes=model.time_spent_minutes,
        happiness_rating=model.happiness_rating,
        customer_feedback=model.customer_feedback,
    )


class SQLAlchemyTicketRepository(ITicketRepository):
    """
    SQLAlchemy implementation of ticket repository.

    Handles persistence of Ticket entities using async SQLAlchemy.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        model = await self._session.get(TicketModel, ticket_id)
        return _ticket_entity(model) if model else None

    async def create(self, ticket: Ticket) -> Ticket:
        model = TicketModel(
            id=ticket.id,
            subject=ticket.subject,
            description=ticket.description,
            status=ticket.status.value,
            priority=ticket.priority.value,
            category=ticket.category,
            created_by=ticket.created_by,
            assigned_agent_id=ticket.assigned_agent_id,
            created_at=ticket.created_at,
            updated_at=ticket.updated_at,
            resolved_at=ticket.resolved_at,
            time_spent_minutes=ticket.time_spent_minutes,
            happiness_rating=ticket.happiness_rating,
            customer_feedback=ticket.customer_feedback,
        )
        self._session.add(model)
        await self._session.flush()
        return _ticket_entity(model)

    async def update(self, ticket: Ticket) -> Ticket:
        model = await self._session.get(TicketModel, ticket.id)
        if not model:
            raise RepositoryException(f"Ticket {ticket.id} not found")

        # Last write wins
        model.status = ticket.status.value
        model.priority = ticket.priority.value
        model.category = ticket.category
        model.assigned_agent_id = ticket.assigned_agent_id
        model.updated_at = ticket.updated_at
        model.resolved_at = ticket.resolved_at
        model.time_spent_minutes = ticket.time_spent_minutes
        model.happiness_rating = ticket.happiness_rating
        model.customer_feedback = ticket.customer_feedback

        await self._session.flush()
        return _ticket_entity(model)

    @staticmethod
    def _conditions(filters: dict) -> list:
        conditions = []
        if "status" in filters:
            status = filters["status"]
            if isinstance(status, (list, tuple, set)):
                conditions.append(TicketModel.status.in_([_value(s) for s in status]))
            else:
                conditions.append(TicketModel.status == _value(status))

        if "priority" in filters:
            conditions.append(TicketModel.priority == _value(filters["priority"]))

        if "created_by" in filters:
            conditions.append(TicketModel.created_by == filters["created_by"])

        if "assigned_agent_id" in filters:
            conditions.append(TicketModel.assigned_agent_id == filters["assigned_agent_id"])

        if filters.get("created_since") is not None:
            conditions.append(TicketModel.created_at >= filters["created_since"])

        return conditions

    async def list(
        self,
        filters: dict,
        limit: int = 100,
        offset: int = 0
    ) -> List[Ticket]:
        stmt = select(TicketModel)
        conditions = self._conditions(filters)
        if conditions:
            stmt = stmt.where(and_(*conditions))

        stmt = stmt.order_by(TicketModel.created_at.desc()).limit(limit).offset(offset)
        result = await self._session.execute(stmt)
        return [_ticket_entity(model) for model in result.scalars().all()]

    async def count(self, filters: dict) -> int:
        stmt = select(func.count(TicketModel.id))
        conditions = self._conditions(filters)
        if conditions:
            stmt = stmt.where(and_(*conditions))

        result = await self._session.execute(stmt)
        return result.scalar_one()


class SQLAlchemyReplyRepository(IReplyRepository):
    """SQLAlchemy implementation of reply repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, reply: Reply) -> Reply:
        self._session.add(ReplyModel(
            id=reply.id,
            ticket_id=reply.ticket_id,
            author_id=reply.author_id,
            author_name=reply.author_name,
            author_role=_value(reply.author_role),
            message=reply.message,
            is_internal=reply.is_internal,
            created_at=reply.created_at,
        ))
        await self._session.flush()
        return reply

    async def list_by_ticket(self, ticket_id: str) -> List[Reply]:
        stmt = (
            select(ReplyModel)
            .where(ReplyModel.ticket_id == ticket_id)
            .order_by(ReplyModel.created_at.asc())
        )
        result = await self._session.execute(stmt)
        return [
            Reply(
                id=model.id,
                ticket_id=model.ticket_id,
                author_id=model.author_id,
                author_name=model.author_name,
                author_role=model.author_role,
                message=model.message,
                is_internal=model.is_internal,
                created_at=model.created_at,
            )
            for model in result.scalars().all()
        ]


class SQLAlchemyHistoryRepository(IHistoryRepository):
    """
    SQLAlchemy implementation of the append-only history.

    Exposes inserts and reads only.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def append(self, entries: List[HistoryEntry]) -> None:
        self._session.add_all([
            HistoryEntryModel(
                ticket_id=entry.ticket_id,
                actor_name=entry.actor_name,
                field=entry.field,
                old_value=entry.old_value,
                new_value=entry.new_value,
                created_at=entry.created_at,
            )
            for entry in entries
        ])
        await self._session.flush()

    async def list_by_ticket(self, ticket_id: str) -> List[HistoryEntry]:
        stmt = (
            select(HistoryEntryModel)
            .where(HistoryEntryModel.ticket_id == ticket_id)
            .order_by(HistoryEntryModel.created_at.asc(), HistoryEntryModel.id.asc())
        )
        result = await self._session.execute(stmt)
        return [
            HistoryEntry(
                id=str(model.id),
                ticket_id=model.ticket_id,
                actor_name=model.actor_name,
                field=model.field,
                old_value=model.old_value,
                new_value=model.new_value,
                created_at=model.created_at,
            )
            for model in result.scalars().all()
        ]


def _attachment_entity(model: AttachmentModel) -> Attachment:
    return Attachment(
        id=model.id,
        ticket_id=model.ticket_id,
        filename=model.filename,
        original_name=model.original_name,
        content_type=model.content_type,
        size_bytes=model.size_bytes,
        uploaded_by=model.uploaded_by,
        created_at=model.created_at,
    )


class SQLAlchemyAttachmentRepository(IAttachmentRepository):
    """SQLAlchemy implementation of attachment metadata repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, attachment: Attachment) -> Attachment:
        model = AttachmentModel(
            id=attachment.id,
            ticket_id=attachment.ticket_id,
            filename=attachment.filename,
            original_name=attachment.original_name,
            content_type=attachment.content_type,
            size_bytes=attachment.size_bytes,
            uploaded_by=attachment.uploaded_by,
            created_at=attachment.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return _attachment_entity(model)

    async def list_by_ticket(self, ticket_id: str) -> List[Attachment]:
        stmt = (
            select(AttachmentModel)
            .where(AttachmentModel.ticket_id == ticket_id)
            .order_by(AttachmentModel.created_at.asc())
        )
        result = await self._session.execute(stmt)
        return [_attachment_entity(model) for model in result.scalars().all()]

    async def get_by_filename(self, filename: str) -> Optional[Attachment]:
        stmt = select(AttachmentModel).where(AttachmentModel.filename == filename)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return _attachment_entity(model) if model else None
