"""
NoteSafe Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Real-transaction tests run against a file-backed SQLite database
       (sqlite+aiosqlite) created fresh under tmp_path for each test, so
       commit/rollback behave exactly as they do in production. Image files
       live in a per-test storage directory.

Fixture Hierarchy (all function-scoped):
    ├── db_engine / session_factory: Fresh database with users + notes tables
    ├── record_store: SqlRecordStore bound to that database
    ├── storage_root / file_store: Temporary image directory
    ├── cleanup_worker / coordinator: The cascade engine wired to the above
    ├── seed: Inserts a user, their notes and (optionally) their image files
    ├── snapshot: Reads back every user and note for before/after comparisons
    └── test_client: HTTPX AsyncClient for endpoint testing
"""

import os
import tempfile
from typing import Iterable, Optional, Tuple

# Override settings for testing BEFORE any notesafe imports
_test_dir = tempfile.mkdtemp(prefix="notesafe_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_test_dir}/notesafe.db"
os.environ["STORAGE_ROOT"] = os.path.join(_test_dir, "uploads")
os.makedirs(os.environ["STORAGE_ROOT"], exist_ok=True)
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from notesafe.database import build_engine, build_session_factory, create_all
from notesafe.models import Note, User
from notesafe.services.image_cleanup import ImageCleanupWorker
from notesafe.services.transaction_coordinator import TransactionCoordinator
from notesafe.stores.file_store import LocalFileStore
from notesafe.stores.record_store import SqlRecordStore


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'cascade.db'}")
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest.fixture
def record_store(session_factory):
    return SqlRecordStore(session_factory)


@pytest.fixture
def storage_root(tmp_path):
    root = tmp_path / "uploads"
    root.mkdir()
    return root


@pytest.fixture
def file_store(storage_root):
    return LocalFileStore(str(storage_root))


@pytest.fixture
def cleanup_worker(file_store):
    return ImageCleanupWorker(file_store, max_concurrency=4)


@pytest.fixture
def coordinator(record_store, cleanup_worker):
    return TransactionCoordinator(store=record_store, cleanup_worker=cleanup_worker)


@pytest.fixture
def seed(session_factory, storage_root):
    """
    Returns an async helper:
        await seed("u1", [("n1", "a.png"), ("n2", "b.png")], create_files=True)
    """

    async def _seed(
        user_id: str,
        notes: Iterable[Tuple[str, str]] = (),
        create_files: bool = True,
        email: Optional[str] = None,
    ) -> None:
        async with session_factory() as session:
            session.add(
                User(
                    id=user_id,
                    username=f"user-{user_id}",
                    email=email or f"{user_id}@example.com",
                    password_hash="not-a-real-hash",
                )
            )
            for note_id, image in notes:
                session.add(
                    Note(
                        id=note_id,
                        title=f"Title {note_id}",
                        content=f"Content of {note_id}",
                        date="2024-06-01",
                        image=image,
                        owner_user_id=user_id,
                    )
                )
                if create_files:
                    (storage_root / image).write_bytes(b"\x89PNG fake image bytes")
            await session.commit()

    return _seed


@pytest.fixture
def snapshot(session_factory):
    """Returns an async helper reading (users, notes) as sorted tuples."""

    async def _snapshot():
        async with session_factory() as session:
            users = (await session.execute(select(User))).scalars().all()
            notes = (await session.execute(select(Note))).scalars().all()
            return (
                sorted((u.id, u.username, u.email) for u in users),
                sorted((n.id, n.owner_user_id, n.image, n.title) for n in notes),
            )

    return _snapshot


@pytest_asyncio.fixture
async def test_client():
    """HTTPX AsyncClient routed straight into the FastAPI app (no server)."""
    from notesafe.main import create_app

    transport = ASGITransport(app=create_app())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
