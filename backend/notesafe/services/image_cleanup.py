"""
NoteSafe Backend — Image Cleanup Worker
=========================================

What:  Deletes the image files of notes removed by a committed cascade.
Why:   Files can't be rolled back, so they are only touched once the database
       outcome is final. Cleanup is best-effort: a file left behind (orphan) is
       logged and reported, never turned into an operation failure.
How:   Bounded fan-out. One task per note, at most `max_concurrency` deletions
       in flight (asyncio.Semaphore), gathered into a single CleanupReport.
       Each task catches its own failure, so one bad file never cancels its
       siblings.
Who:   Called by TransactionCoordinator right after commit, or by the route's
       background task when cleanup runs after the HTTP response.

Completion order is whatever the filesystem gives us; nothing may rely on it.
"""

import asyncio
import logging
from typing import Iterable, Optional

from notesafe.config import settings
from notesafe.exceptions import FileStorageError, ValidationError
from notesafe.schemas.cascade import CleanupFailure, CleanupReport
from notesafe.schemas.records import NoteRecord
from notesafe.stores.file_store import FileStore

logger = logging.getLogger(__name__)


class ImageCleanupWorker:
    def __init__(self, file_store: FileStore, max_concurrency: Optional[int] = None):
        """
        Args:
            file_store: Where the images live.
            max_concurrency: Cap on parallel deletions (default: settings.cleanup_max_concurrency).
        """
        self.file_store = file_store
        self.max_concurrency = max_concurrency or settings.cleanup_max_concurrency

    async def cleanup_images(self, notes: Iterable[NoteRecord]) -> CleanupReport:
        """
        Delete the image of every note and report per-image outcomes.

        Never raises for filesystem problems; those land in report.failed.
        """
        notes = list(notes)
        report = CleanupReport()
        if not notes:
            return report

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def delete_one(note: NoteRecord) -> None:
            async with semaphore:
                failure = await self._delete_image(note)
            # Single event loop: appends between awaits don't interleave
            report.attempted.append(note.image)
            if failure is None:
                report.succeeded.append(note.image)
            else:
                report.failed.append(failure)

        await asyncio.gather(*(delete_one(note) for note in notes))

        if report.failed:
            logger.warning(
                "Image cleanup left %d orphan file(s) of %d: %s",
                len(report.failed),
                len(report.attempted),
                [failure.image for failure in report.failed],
            )
        else:
            logger.info("Image cleanup removed %d file(s)", len(report.succeeded))
        return report

    async def _delete_image(self, note: NoteRecord) -> Optional[CleanupFailure]:
        try:
            await self.file_store.delete_blob(note.image)
        except FileStorageError as e:
            logger.warning(
                "Could not delete image %s of note %s (%s): %s",
                note.image, note.id, e.reason, e.context.get("os_error", e.message),
            )
            return CleanupFailure(
                note_id=note.id,
                image=note.image,
                reason=e.reason,
                detail=str(e.context.get("os_error", e.message)),
            )
        except ValidationError as e:
            logger.warning("Refusing to delete image %s of note %s: %s", note.image, note.id, e.message)
            return CleanupFailure(
                note_id=note.id, image=note.image, reason="invalid_path", detail=e.message
            )
        except Exception as e:
            # The transaction is already committed; nothing here may escape
            logger.error(
                "Unexpected error deleting image %s of note %s: %s",
                note.image, note.id, str(e), exc_info=True,
            )
            return CleanupFailure(
                note_id=note.id, image=note.image, reason="os_error", detail=str(e)
            )
        return None
