"""
NoteSafe Backend — Database Engine & Session Factory
======================================================

What:  Async SQLAlchemy engine, session factory and declarative base.
Why:   Centralizes all database connection logic in one place.
How:   Creates an async engine with connection pooling and a session factory.
       Sessions are NOT handed out per request here: the record store opens
       one explicitly for each cascade and passes it down as an argument.
Who:   Used by SqlRecordStore, the health check, Alembic and the test suite.
When:  Engine is created at module import; sessions per cascade operation.

Connection Pooling Strategy:
    pool_size=20:     Persistent connections for normal load
    max_overflow=10:  Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:    Validates connections before use (catches stale connections)
    pool_recycle=3600: Recycles connections every hour
    SQLite URLs skip the sizing options; its dialect picks its own pool.
    SQLite connections also switch on foreign key enforcement (PRAGMA).
"""

from typing import Any, Dict

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from notesafe.config import settings


def build_engine(database_url: str) -> AsyncEngine:
    """Create an async engine, applying pool sizing only where the dialect pools."""
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
        return create_async_engine(database_url, **options)

    engine = create_async_engine(database_url, **options)
    # SQLite ignores foreign keys unless each connection opts in
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: records read inside the cascade stay usable
    # after commit (the cleanup worker reads their image names)
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


# ── Engine Configuration ──────────────────────────────────────────────────
engine = build_engine(settings.database_url)

# ── Session Factory ───────────────────────────────────────────────────────
async_session_factory = build_session_factory(engine)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class to register with the shared metadata
    (used by Alembic for migrations and by create_all() in tests).
    """
    pass


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def create_all(bind: AsyncEngine = engine) -> None:
    """
    What:  Creates every table registered on Base.metadata.
    When:  Local development and the test suite; production uses Alembic.
    """
    # Import models so they register with Base before create_all runs
    from notesafe.models import Note, User  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
