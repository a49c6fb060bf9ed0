import copy
import os
from datetime import datetime, timedelta, timezone
from typing import Dict, List
from uuid import uuid4

# Settings are read at import time; keep tests off any real services.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("MOCK_LLM", "false")
os.environ.setdefault("OPENAI_API_KEY", "")
os.environ.setdefault("SLA_CONFIG_PATH", "does-not-exist.yaml")

import pytest
from fastapi.testclient import TestClient

from helpdesk.access.domain import SessionContext
from helpdesk.analytics.application import AnalyticsService
from helpdesk.analytics.interfaces import get_analytics_service
from helpdesk.config import Role
from helpdesk.knowledge.application import IArticleRepository, KnowledgeBaseService
from helpdesk.knowledge.domain import KBArticle
from helpdesk.knowledge.interfaces import get_kb_service
from helpdesk.main import app
from helpdesk.notifications.application import (
    INotificationRepository,
    NotificationDispatcher,
    NotificationService,
)
from helpdesk.notifications.domain import Notification
from helpdesk.notifications.interfaces import get_notification_service
from helpdesk.tickets.application import (
    AttachmentService,
    IAttachmentRepository,
    IHistoryRepository,
    IReplyRepository,
    ITicketRepository,
    TicketService,
)
from helpdesk.tickets.domain import Attachment, HistoryEntry, Reply, SLAClock, SLAConfig, Ticket
from helpdesk.tickets.infrastructure import LocalAttachmentStorage
from helpdesk.tickets.interfaces import get_attachment_service, get_ticket_service
from helpdesk.users.application import (
    AuthService,
    IPasswordHasher,
    IPasswordResetRepository,
    ISessionTokenRepository,
    IUserRepository,
    UserService,
)
from helpdesk.users.domain import User
from helpdesk.users.interfaces import get_auth_service, get_user_service


NOW = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


# ── in-memory repositories ───────────────────────────────────────────


class InMemoryUserRepository(IUserRepository):
    def __init__(self):
        self.users: Dict[str, User] = {}
        self.hashes: Dict[str, str] = {}

    async def get_by_id(self, user_id):
        user = self.users.get(user_id)
        return copy.deepcopy(user) if user else None

    async def get_by_email(self, email):
        for user in self.users.values():
            if user.email == email:
                return copy.deepcopy(user)
        return None

    async def list(self, roles=None):
        return [copy.deepcopy(u) for u in self.users.values() if roles is None or u.role in roles]

    async def create(self, user, password_hash):
        self.users[user.id] = copy.deepcopy(user)
        self.hashes[user.id] = password_hash
        return user

    async def update(self, user):
        self.users[user.id] = copy.deepcopy(user)
        return user

    async def delete(self, user_id):
        self.users.pop(user_id, None)
        self.hashes.pop(user_id, None)

    async def get_password_hash(self, user_id):
        return self.hashes.get(user_id)

    async def set_password_hash(self, user_id, password_hash):
        self.hashes[user_id] = password_hash


class InMemoryTokenRepository(ISessionTokenRepository):
    def __init__(self):
        self.tokens: Dict[str, tuple] = {}

    async def create(self, token, user_id, expires_at):
        self.tokens[token] = (user_id, expires_at)

    async def get_user_id(self, token, now):
        entry = self.tokens.get(token)
        if not entry or entry[1] <= now:
            return None
        return entry[0]

    async def revoke_for_user(self, user_id):
        doomed = [t for t, (uid, _) in self.tokens.items() if uid == user_id]
        for token in doomed:
            del self.tokens[token]
        return len(doomed)

    async def purge_expired(self, now):
        doomed = [t for t, (_, expires_at) in self.tokens.items() if expires_at <= now]
        for token in doomed:
            del self.tokens[token]
        return len(doomed)


class InMemoryPasswordResetRepository(InMemoryTokenRepository, IPasswordResetRepository):
    """Keyed by token digest, same expiry rules as bearer tokens."""


class PlainHasher(IPasswordHasher):
    def hash(self, password):
        return f"plain${password}"

    def verify(self, password, password_hash):
        return password_hash == f"plain${password}"


def _value(v):
    return getattr(v, "value", v)


class InMemoryTicketRepository(ITicketRepository):
    def __init__(self):
        self.tickets: Dict[str, Ticket] = {}

    async def get_by_id(self, ticket_id):
        ticket = self.tickets.get(ticket_id)
        return copy.deepcopy(ticket) if ticket else None

    async def create(self, ticket):
        self.tickets[ticket.id] = copy.deepcopy(ticket)
        return ticket

    async def update(self, ticket):
        self.tickets[ticket.id] = copy.deepcopy(ticket)
        return ticket

    def _matching(self, filters):
        found = []
        for t in self.tickets.values():
            if "status" in filters and t.status.value != _value(filters["status"]):
                continue
            if "priority" in filters and t.priority.value != _value(filters["priority"]):
                continue
            if "created_by" in filters and t.created_by != filters["created_by"]:
                continue
            if "assigned_agent_id" in filters and t.assigned_agent_id != filters["assigned_agent_id"]:
                continue
            if filters.get("created_since") is not None and t.created_at < filters["created_since"]:
                continue
            found.append(t)
        return sorted(found, key=lambda t: t.created_at, reverse=True)

    async def list(self, filters, limit=100, offset=0):
        return [copy.deepcopy(t) for t in self._matching(filters)[offset:offset + limit]]

    async def count(self, filters):
        return len(self._matching(filters))


class InMemoryReplyRepository(IReplyRepository):
    def __init__(self):
        self.replies: List[Reply] = []

    async def create(self, reply):
        self.replies.append(copy.deepcopy(reply))
        return reply

    async def list_by_ticket(self, ticket_id):
        return [copy.deepcopy(r) for r in self.replies if r.ticket_id == ticket_id]


class InMemoryHistoryRepository(IHistoryRepository):
    def __init__(self):
        self.entries: List[HistoryEntry] = []

    async def append(self, entries):
        self.entries.extend(entries)

    async def list_by_ticket(self, ticket_id):
        return [e for e in self.entries if e.ticket_id == ticket_id]


class InMemoryAttachmentRepository(IAttachmentRepository):
    def __init__(self):
        self.attachments: List[Attachment] = []

    async def create(self, attachment):
        self.attachments.append(attachment)
        return attachment

    async def list_by_ticket(self, ticket_id):
        return [a for a in self.attachments if a.ticket_id == ticket_id]

    async def get_by_filename(self, filename):
        return next((a for a in self.attachments if a.filename == filename), None)


class InMemoryNotificationRepository(INotificationRepository):
    def __init__(self):
        self.notifications: Dict[str, Notification] = {}

    async def create_many(self, notifications):
        for n in notifications:
            self.notifications[n.id] = copy.deepcopy(n)

    async def get_by_id(self, notification_id):
        n = self.notifications.get(notification_id)
        return copy.deepcopy(n) if n else None

    async def list_for_recipient(self, recipient_id, limit=100):
        items = [copy.deepcopy(n) for n in self.notifications.values() if n.recipient_id == recipient_id]
        return sorted(items, key=lambda n: n.created_at, reverse=True)[:limit]

    async def count_unread(self, recipient_id):
        return sum(1 for n in self.notifications.values() if n.recipient_id == recipient_id and not n.is_read)

    async def mark_read(self, notification):
        stored = self.notifications[notification.id]
        if not stored.is_read:
            stored.is_read = True
            stored.read_at = notification.read_at


class InMemoryArticleRepository(IArticleRepository):
    def __init__(self):
        self.articles: List[KBArticle] = []

    async def create(self, article):
        self.articles.append(article)
        return article

    async def list(self, category=None):
        items = [a for a in self.articles if not category or (a.category or "").lower() == category.lower()]
        return sorted(items, key=lambda a: a.created_at, reverse=True)

    async def search(self, keyword):
        return [a for a in await self.list() if a.matches(keyword)]


# ── backend bundle ───────────────────────────────────────────────────


class Backend:
    """All in-memory repositories plus helpers to seed them."""

    def __init__(self, upload_dir=None):
        self.users = InMemoryUserRepository()
        self.tokens = InMemoryTokenRepository()
        self.resets = InMemoryPasswordResetRepository()
        self.hasher = PlainHasher()
        self.tickets = InMemoryTicketRepository()
        self.replies = InMemoryReplyRepository()
        self.history = InMemoryHistoryRepository()
        self.attachments = InMemoryAttachmentRepository()
        self.notifications = InMemoryNotificationRepository()
        self.articles = InMemoryArticleRepository()
        self.storage = LocalAttachmentStorage(upload_dir) if upload_dir else None
        self.sla_clock = SLAClock(SLAConfig(window_minutes=120, urgency_threshold_minutes=120))

    # services

    def auth_service(self):
        return AuthService(self.users, self.tokens, self.hasher, reset_repository=self.resets)

    def user_service(self):
        return UserService(self.users, self.tokens, self.hasher, assignments=self.ticket_service())

    def ticket_service(self, event_sink=None):
        return TicketService(
            self.tickets,
            self.replies,
            self.history,
            self.users,
            event_sink=event_sink or NotificationDispatcher(self.notifications, self.users),
            sla_clock=self.sla_clock,
        )

    def attachment_service(self):
        return AttachmentService(self.ticket_service(), self.attachments, self.storage, max_upload_bytes=1024)

    def notification_service(self):
        return NotificationService(self.notifications)

    def kb_service(self):
        return KnowledgeBaseService(self.articles)

    def analytics_service(self):
        return AnalyticsService(self.tickets, self.users, sla_clock=self.sla_clock)

    # seeding

    def add_user(self, role=Role.CUSTOMER, name=None, email=None, active=True, password="secret1"):
        user_id = str(uuid4())
        user = User(
            id=user_id,
            email=email or f"{user_id[:8]}@example.com",
            role=role,
            name=name or role.value,
        )
        if not active:
            user.toggle_status()
        self.users.users[user.id] = user
        self.users.hashes[user.id] = self.hasher.hash(password)
        return user

    def token_for(self, user):
        token = f"tok-{user.id}"
        self.tokens.tokens[token] = (user.id, datetime.now(timezone.utc) + timedelta(hours=1))
        return token

    def session_for(self, user):
        return user.to_session(self.token_for(user))

    def add_ticket(self, creator, created_at=None, **fields):
        ticket = Ticket(
            id=str(uuid4()),
            subject=fields.pop("subject", "Cannot connect to VPN"),
            description=fields.pop("description", "VPN client fails since this morning."),
            created_by=creator.id,
            created_at=created_at or datetime.now(timezone.utc),
            **fields,
        )
        self.tickets.tickets[ticket.id] = ticket
        return ticket


def run(coro):
    import asyncio
    return asyncio.run(coro)


def session(role=Role.CUSTOMER, user_id=None, name=None) -> SessionContext:
    return SessionContext(
        user_id=user_id or str(uuid4()),
        email=f"{role.value.lower().replace(' ', '')}@example.com",
        role=role,
        name=name or role.value,
    )


@pytest.fixture()
def backend(tmp_path):
    return Backend(upload_dir=tmp_path / "uploads")


@pytest.fixture()
def client(backend):
    overrides = {
        get_auth_service: lambda: backend.auth_service(),
        get_user_service: lambda: backend.user_service(),
        get_ticket_service: lambda: backend.ticket_service(),
        get_attachment_service: lambda: backend.attachment_service(),
        get_notification_service: lambda: backend.notification_service(),
        get_kb_service: lambda: backend.kb_service(),
        get_analytics_service: lambda: backend.analytics_service(),
    }
    app.dependency_overrides.update(overrides)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
