"""
Current Visit API: Database Engine Helpers
==========================================

What:  Declarative base and the async engine/session factory builders.
How:   `build_engine()` turns a connection URL into an async engine, adding
       pool sizing for server databases; `build_session_factory()` wraps it in
       an `async_sessionmaker`. Each VisitStore owns one engine, so the URL is
       injected at construction rather than read from a module global.
Who:   Used by services.visit_store and by the ORM models.
"""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from visitapi.config import settings


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models; owns the shared metadata."""
    pass


def build_engine(database_url: str) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    SQLite (aiosqlite) selects its own pool class and rejects the queue-pool
    sizing arguments, so those are only passed for server databases.
    """
    url = make_url(database_url)
    engine_kwargs = {
        "echo": settings.log_level == "DEBUG",
    }
    if url.get_backend_name() != "sqlite":
        engine_kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return create_async_engine(url, **engine_kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to `engine`.

    expire_on_commit=False keeps row attributes readable after the session
    block that loaded them has committed.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
