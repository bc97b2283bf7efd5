"""
NoteSafe Backend — File Store
===============================

What:  Deletes note image blobs from the storage volume.
Why:   Image files live outside the database, so their removal can't join the
       cascade's transaction. This seam gives the cleanup worker one awaitable
       call with a deterministic outcome: it returns, or it raises.
How:   LocalFileStore resolves the blob name under STORAGE_ROOT and removes it
       with aiofiles.os (the unlink runs in a thread, off the event loop).
Who:   Called by ImageCleanupWorker after a cascade has committed.

Outcome Contract:
    delete_blob(name) -> None               file removed
    delete_blob(name) raises FileStorageError
        reason="missing"            file did not exist
        reason="permission_denied"  OS refused the unlink
        reason="os_error"           any other OSError
    delete_blob(name) raises ValidationError
        name resolves outside the storage root (never touches the filesystem)
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import aiofiles.os

from notesafe.config import settings
from notesafe.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)


class FileStore(ABC):
    """Abstract blob deletion, independent of any database transaction."""

    @abstractmethod
    async def delete_blob(self, name: str) -> None:
        """Remove the named blob. Raises FileStorageError on failure."""


class LocalFileStore(FileStore):
    """
    Blob storage on the local (or mounted) filesystem.

    Directory Structure:
        uploads/
        ├── 1718000000000-photo.png
        └── 1718000000123-scan.jpg
    Note.image holds the name relative to the root.
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                          If None, uses settings.storage_root.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        logger.info("LocalFileStore initialized with storage_root=%s", self.storage_root)

    def resolve(self, name: str) -> Path:
        """
        Map a blob name to its absolute path, refusing anything that escapes the root.

        Security: Blob names come from database rows written by clients;
        "../../etc/passwd" must never reach unlink().
        """
        if not name or not name.strip():
            raise ValidationError(message="Blob name must not be empty", field="name")
        path = (self.storage_root / name).resolve()
        if path == self.storage_root or not path.is_relative_to(self.storage_root):
            raise ValidationError(
                message="Blob name resolves outside the storage root",
                field="name",
                context={"name": name},
            )
        return path

    async def delete_blob(self, name: str) -> None:
        path = self.resolve(name)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError as e:
            raise FileStorageError(
                message=f"Image '{name}' does not exist",
                reason="missing",
                context={"name": name, "os_error": str(e)},
            ) from e
        except PermissionError as e:
            raise FileStorageError(
                message=f"Not permitted to delete image '{name}'",
                reason="permission_denied",
                context={"name": name, "os_error": str(e)},
            ) from e
        except OSError as e:
            raise FileStorageError(
                message=f"Failed to delete image '{name}'",
                reason="os_error",
                context={"name": name, "os_error": str(e)},
            ) from e
        logger.info("Deleted image: %s", name)


# ── Singleton Instance ────────────────────────────────────────────────────
file_store = LocalFileStore()
