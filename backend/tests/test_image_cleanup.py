"""
NoteSafe Backend — Image Cleanup Worker Tests
===============================================

What:  Per-image outcome reporting and the concurrency cap of the
       post-commit cleanup fan-out.
"""

import asyncio

import pytest

from notesafe.exceptions import FileStorageError
from notesafe.schemas.records import NoteRecord
from notesafe.services.image_cleanup import ImageCleanupWorker
from notesafe.stores.file_store import FileStore


def make_note(note_id: str, image: str, owner: str = "u1") -> NoteRecord:
    return NoteRecord(id=note_id, owner_user_id=owner, image=image)


class SlowFileStore(FileStore):
    """Tracks how many deletions are in flight at once."""

    def __init__(self, delay: float = 0.01):
        self.delay = delay
        self.in_flight = 0
        self.peak = 0
        self.deleted = []

    async def delete_blob(self, name: str) -> None:
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            self.deleted.append(name)
        finally:
            self.in_flight -= 1


class ExplodingFileStore(FileStore):
    async def delete_blob(self, name: str) -> None:
        if name == "bad.png":
            raise RuntimeError("disk on fire")
        if name == "gone.png":
            raise FileStorageError(reason="missing", context={"os_error": "No such file"})


class TestCleanupReport:
    @pytest.mark.asyncio
    async def test_all_images_removed(self, cleanup_worker, storage_root):
        for name in ("a.png", "b.png", "c.png"):
            (storage_root / name).write_bytes(b"png")
        notes = [make_note("n1", "a.png"), make_note("n2", "b.png"), make_note("n3", "c.png")]

        report = await cleanup_worker.cleanup_images(notes)

        assert report.ok
        assert sorted(report.attempted) == ["a.png", "b.png", "c.png"]
        assert sorted(report.succeeded) == ["a.png", "b.png", "c.png"]
        assert list(storage_root.iterdir()) == []

    @pytest.mark.asyncio
    async def test_missing_file_is_the_only_failure(self, cleanup_worker, storage_root):
        (storage_root / "b.png").write_bytes(b"png")
        notes = [make_note("n1", "a.png"), make_note("n2", "b.png")]

        report = await cleanup_worker.cleanup_images(notes)

        assert not report.ok
        assert sorted(report.attempted) == ["a.png", "b.png"]
        assert report.succeeded == ["b.png"]
        assert len(report.failed) == 1
        failure = report.failed[0]
        assert (failure.note_id, failure.image, failure.reason) == ("n1", "a.png", "missing")

    @pytest.mark.asyncio
    async def test_unsafe_name_reported_not_followed(self, cleanup_worker, tmp_path):
        outside = tmp_path / "secret.txt"
        outside.write_text("keep me")

        report = await cleanup_worker.cleanup_images([make_note("n1", "../secret.txt")])

        assert report.failed[0].reason == "invalid_path"
        assert outside.exists()

    @pytest.mark.asyncio
    async def test_unexpected_error_does_not_cancel_siblings(self):
        worker = ImageCleanupWorker(ExplodingFileStore(), max_concurrency=2)
        notes = [make_note("n1", "bad.png"), make_note("n2", "ok.png"), make_note("n3", "gone.png")]

        report = await worker.cleanup_images(notes)

        assert report.succeeded == ["ok.png"]
        reasons = {failure.image: failure.reason for failure in report.failed}
        assert reasons == {"bad.png": "os_error", "gone.png": "missing"}
        assert "disk on fire" in next(f.detail for f in report.failed if f.image == "bad.png")

    @pytest.mark.asyncio
    async def test_no_notes(self, cleanup_worker):
        report = await cleanup_worker.cleanup_images([])

        assert report.attempted == []
        assert report.ok


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_in_flight_deletions_are_capped(self):
        store = SlowFileStore()
        worker = ImageCleanupWorker(store, max_concurrency=3)
        notes = [make_note(f"n{i}", f"{i}.png") for i in range(12)]

        report = await worker.cleanup_images(notes)

        assert store.peak == 3
        assert sorted(store.deleted) == sorted(f"{i}.png" for i in range(12))
        assert len(report.succeeded) == 12

    @pytest.mark.asyncio
    async def test_default_cap_from_settings(self):
        from notesafe.config import settings

        worker = ImageCleanupWorker(SlowFileStore())
        assert worker.max_concurrency == settings.cleanup_max_concurrency
