"""
NoteSafe Backend — Account Service Tests
==========================================

What:  Conflict retry around the cascade and the background cleanup entry.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from notesafe.exceptions import DatabaseError, NotFoundError, TransactionConflictError
from notesafe.schemas.cascade import CleanupReport, DeletionResult
from notesafe.schemas.records import NoteRecord
from notesafe.services.account_service import AccountService


def make_service(side_effect, attempts: int = 3) -> AccountService:
    coordinator = MagicMock()
    coordinator.delete_user_and_notes = AsyncMock(side_effect=side_effect)
    return AccountService(coordinator, max_attempts=attempts, min_wait=0, max_wait=0)


class TestDeleteAccount:
    @pytest.mark.asyncio
    async def test_conflict_is_retried(self):
        committed = DeletionResult(user_id="u1", deleted=True)
        service = make_service([TransactionConflictError(), committed])

        result = await service.delete_account("u1")

        assert result is committed
        assert service.coordinator.delete_user_and_notes.await_count == 2

    @pytest.mark.asyncio
    async def test_conflict_exhaustion_reraises(self):
        service = make_service(TransactionConflictError(), attempts=3)

        with pytest.raises(TransactionConflictError):
            await service.delete_account("u1")

        assert service.coordinator.delete_user_and_notes.await_count == 3

    @pytest.mark.asyncio
    async def test_other_store_errors_not_retried(self):
        service = make_service(DatabaseError())

        with pytest.raises(DatabaseError):
            await service.delete_account("u1")

        assert service.coordinator.delete_user_and_notes.await_count == 1

    @pytest.mark.asyncio
    async def test_not_found_returned_as_is(self):
        missing = DeletionResult(user_id="ghost", deleted=False, error=NotFoundError("user", "ghost"))
        service = make_service([missing])

        result = await service.delete_account("ghost")

        assert result.error is missing.error

    @pytest.mark.asyncio
    async def test_run_cleanup_forwarded(self):
        service = make_service([DeletionResult(user_id="u1", deleted=True)])

        await service.delete_account("u1", run_cleanup=False)

        service.coordinator.delete_user_and_notes.assert_awaited_once_with("u1", run_cleanup=False)

    @pytest.mark.asyncio
    async def test_retry_against_real_store(self, coordinator, seed, snapshot):
        """A conflicted first attempt leaves nothing behind; the retry commits."""
        await seed("u1", [("n1", "a.png")])
        original_commit = coordinator.store.commit
        calls = {"n": 0}

        async def flaky_commit(session):
            calls["n"] += 1
            if calls["n"] == 1:
                raise TransactionConflictError(context={"operation": "commit"})
            await original_commit(session)

        coordinator.store.commit = flaky_commit
        service = AccountService(coordinator, max_attempts=2, min_wait=0, max_wait=0)

        result = await service.delete_account("u1")

        assert result.deleted is True
        assert [note.id for note in result.notes] == ["n1"]
        assert await snapshot() == ([], [])


class TestBackgroundCleanup:
    @pytest.mark.asyncio
    async def test_delegates_to_worker(self):
        report = CleanupReport(attempted=["a.png"], succeeded=["a.png"])
        coordinator = MagicMock()
        coordinator.cleanup_worker.cleanup_images = AsyncMock(return_value=report)
        service = AccountService(coordinator, max_attempts=1, min_wait=0, max_wait=0)
        notes = [NoteRecord(id="n1", owner_user_id="u1", image="a.png")]

        assert await service.cleanup_images("u1", notes) is report
        coordinator.cleanup_worker.cleanup_images.assert_awaited_once_with(notes)
