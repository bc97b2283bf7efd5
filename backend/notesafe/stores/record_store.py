"""
NoteSafe Backend — Record Store
=================================

What:  Transactional access to the `users` and `notes` collections.
Why:   The cascade engine needs a handful of document-style operations
       (delete by key, find/delete by filter, load by key list) that all run
       inside ONE caller-owned session. Hiding SQLAlchemy behind this seam keeps
       the coordinator free of query code and lets tests fake the store.
How:   RecordStore is the abstract contract; SqlRecordStore implements it over
       async SQLAlchemy. Collections are table names mapped to ORM models.

Session Contract:
    - start_session() hands out a fresh AsyncSession (never a shared one)
    - Every operation takes that session as its first argument
    - commit()/abort() end the transaction; end_session() releases it
    - session() wraps start/end in an async context manager so release
      happens exactly once on every exit path

Error Translation:
    Any SQLAlchemyError becomes DatabaseError, or TransactionConflictError
    when the driver reports a serialization failure / deadlock. The original
    exception is chained (raise ... from) for the logs.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncIterator, Dict, Iterator, List, Mapping, Optional, Sequence, Type

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notesafe.database import Base, async_session_factory
from notesafe.exceptions import DatabaseError, TransactionConflictError, ValidationError
from notesafe.models import Note, User

logger = logging.getLogger(__name__)

# What: Collection name → ORM model
COLLECTIONS: Dict[str, Type[Base]] = {
    "users": User,
    "notes": Note,
}

# SQLSTATE serialization_failure and deadlock_detected
CONFLICT_SQLSTATES = {"40001", "40P01"}


class RecordStore(ABC):
    """
    Abstract contract for the document store used by the account cascade.

    Filters are flat {field: value} equality mappings, matching how the
    cascade addresses notes ({"owner_user_id": user_id}).
    """

    @abstractmethod
    async def start_session(self) -> AsyncSession:
        """Open a new transaction session owned by the caller."""

    @abstractmethod
    async def end_session(self, session: AsyncSession) -> None:
        """Release a session. Rolls back anything still pending."""

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Scoped session: started on entry, released exactly once on exit."""
        session = await self.start_session()
        try:
            yield session
        finally:
            await self.end_session(session)

    @abstractmethod
    async def commit(self, session: AsyncSession) -> None:
        """Persist everything staged in the session."""

    @abstractmethod
    async def abort(self, session: AsyncSession) -> None:
        """Discard everything staged in the session."""

    @abstractmethod
    async def delete_one(self, session: AsyncSession, collection: str, key: str) -> Optional[Any]:
        """Delete one record by primary key. Returns the deleted record, or None if absent."""

    @abstractmethod
    async def find_many(
        self,
        session: AsyncSession,
        collection: str,
        filter: Mapping[str, Any],
        fields: Optional[Sequence[str]] = None,
    ) -> List[Any]:
        """
        Unordered find by filter.

        With ``fields`` only those columns are read and each result is a dict
        (a projection); otherwise full records are returned.
        """

    @abstractmethod
    async def find_by_keys(
        self,
        session: AsyncSession,
        collection: str,
        keys: Sequence[str],
        ordered: bool = False,
    ) -> List[Any]:
        """
        Load records by primary key. Missing keys are simply absent from the result.

        ordered=True returns records in the order of ``keys``.
        """

    @abstractmethod
    async def delete_many(self, session: AsyncSession, collection: str, filter: Mapping[str, Any]) -> int:
        """Bulk delete by filter. Returns the number of records removed."""


@contextmanager
def _translated_errors(operation: str, **context: Any) -> Iterator[None]:
    """Re-raise SQLAlchemy failures as the application's store errors."""
    try:
        yield
    except SQLAlchemyError as e:
        ctx = {"operation": operation, "error_type": type(e).__name__, **context}
        if _is_conflict(e):
            logger.warning("Store conflict during %s: %s", operation, str(e))
            raise TransactionConflictError(context=ctx) from e
        logger.error("Store error during %s: %s", operation, str(e))
        raise DatabaseError(context=ctx) from e


def _is_conflict(exc: SQLAlchemyError) -> bool:
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code in CONFLICT_SQLSTATES:
        return True
    # SQLite signals writer contention only through the message
    return "database is locked" in str(orig if orig is not None else exc).lower()


class SqlRecordStore(RecordStore):
    """
    RecordStore over async SQLAlchemy.

    Sessions rely on SQLAlchemy's autobegin: the transaction starts with the
    first statement and spans everything until commit() or abort().
    """

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        """
        Args:
            session_factory: Override the default factory (used in tests).
        """
        self._session_factory = session_factory or async_session_factory

    # ── Session Lifecycle ─────────────────────────────────────────────────

    async def start_session(self) -> AsyncSession:
        session = self._session_factory()
        logger.debug("Session opened: %s", id(session))
        return session

    async def end_session(self, session: AsyncSession) -> None:
        with _translated_errors("end_session"):
            await session.close()
        logger.debug("Session closed: %s", id(session))

    async def commit(self, session: AsyncSession) -> None:
        with _translated_errors("commit"):
            await session.commit()

    async def abort(self, session: AsyncSession) -> None:
        with _translated_errors("abort"):
            await session.rollback()

    # ── Operations ────────────────────────────────────────────────────────

    async def delete_one(self, session: AsyncSession, collection: str, key: str) -> Optional[Any]:
        """
        The DELETE statement's row count decides the outcome, not the lookup.

        Two cascades for the same user can both load the row; the second
        DELETE then waits for the first to commit and matches nothing.
        That caller gets None (NotFound), never the stale record.
        """
        model = self._model(collection)
        with _translated_errors("delete_one", collection=collection, key=key):
            record = await session.get(model, key)
            if record is None:
                return None
            result = await session.execute(
                delete(model)
                .where(model.id == key)
                .execution_options(synchronize_session="evaluate")
            )
        if result.rowcount != 1:
            logger.info("%s/%s was deleted concurrently; treating as absent", collection, key)
            return None
        logger.debug("Deleted %s/%s (staged)", collection, key)
        return record

    async def find_many(
        self,
        session: AsyncSession,
        collection: str,
        filter: Mapping[str, Any],
        fields: Optional[Sequence[str]] = None,
    ) -> List[Any]:
        model = self._model(collection)
        criteria = self._criteria(model, collection, filter)
        with _translated_errors("find_many", collection=collection):
            if fields:
                columns = [self._column(model, collection, name) for name in fields]
                result = await session.execute(select(*columns).where(*criteria))
                return [dict(row) for row in result.mappings().all()]
            result = await session.execute(select(model).where(*criteria))
            return list(result.scalars().all())

    async def find_by_keys(
        self,
        session: AsyncSession,
        collection: str,
        keys: Sequence[str],
        ordered: bool = False,
    ) -> List[Any]:
        if not keys:
            return []
        model = self._model(collection)
        with _translated_errors("find_by_keys", collection=collection, key_count=len(keys)):
            result = await session.execute(select(model).where(model.id.in_(list(keys))))
            records = list(result.scalars().all())
        if not ordered:
            return records
        by_key = {record.id: record for record in records}
        return [by_key[key] for key in keys if key in by_key]

    async def delete_many(self, session: AsyncSession, collection: str, filter: Mapping[str, Any]) -> int:
        model = self._model(collection)
        criteria = self._criteria(model, collection, filter)
        if not criteria:
            # An empty filter would wipe the collection
            raise ValidationError(
                message="Bulk delete requires a non-empty filter",
                context={"collection": collection},
            )
        with _translated_errors("delete_many", collection=collection):
            result = await session.execute(delete(model).where(*criteria))
        count = result.rowcount or 0
        logger.debug("Deleted %d record(s) from %s (staged)", count, collection)
        return count

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def _model(collection: str) -> Type[Base]:
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise ValidationError(
                message=f"Unknown collection '{collection}'",
                field="collection",
                context={"known": sorted(COLLECTIONS)},
            )

    @staticmethod
    def _column(model: Type[Base], collection: str, name: str) -> Any:
        column = getattr(model, name, None)
        if column is None or name.startswith("_"):
            raise ValidationError(
                message=f"Unknown field '{name}' for collection '{collection}'",
                field=name,
            )
        return column

    def _criteria(self, model: Type[Base], collection: str, filter: Mapping[str, Any]) -> List[Any]:
        return [self._column(model, collection, name) == value for name, value in filter.items()]


# ── Singleton Instance ────────────────────────────────────────────────────
record_store = SqlRecordStore()
