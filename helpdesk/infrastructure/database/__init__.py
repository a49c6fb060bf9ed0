"""
Persistence Engine
==================

Process-wide async SQLAlchemy engine shared by every context's
repositories.

PostgreSQL through asyncpg.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from helpdesk.config import settings


class Base(DeclarativeBase):
    """Declarative base shared by every context's ORM models."""


_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None

MODEL_MODULES = (
    "helpdesk.users.infrastructure.models",
    "helpdesk.tickets.infrastructure.models",
    "helpdesk.notifications.infrastructure.models",
    "helpdesk.knowledge.infrastructure.models",
)


def get_engine() -> AsyncEngine:
    if _engine is None:
        raise RuntimeError("init_database() has not been called")
    return _engine


def init_database(database_url: str | None = None) -> AsyncEngine:
    """
    Build the engine and session factory from settings.

    Pool sizing only applies to server databases; SQLite URLs get the
    driver's default pool.
    """
    global _engine, _session_maker

    # asyncpg spells libpq's sslmode= as ssl=
    url = (database_url or settings.database_url).replace("sslmode=", "ssl=")

    options = {"echo": settings.debug, "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        options.update(pool_size=settings.db_pool_size, max_overflow=settings.db_max_overflow)

    _engine = create_async_engine(url, **options)
    _session_maker = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return _engine


async def close_database() -> None:
    global _engine, _session_maker

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_maker = None


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """One unit of work: commit on success, roll back on any error."""
    if _session_maker is None:
        raise RuntimeError("init_database() has not been called")

    async with _session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding one unit of work per request.

    A handler that returns normally commits everything it wrote; a
    handler that raises leaves no partial ticket change behind.
    """
    async with session_scope() as session:
        yield session


async def create_tables() -> None:
    """Create missing tables. Development convenience, not a migration tool."""
    import importlib

    for module in MODEL_MODULES:
        importlib.import_module(module)

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
