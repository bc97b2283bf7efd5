"""
NoteSafe Backend — File Store Tests
=====================================

What:  LocalFileStore deletion outcomes and path confinement.
"""

import pytest
from unittest.mock import patch

from notesafe.exceptions import FileStorageError, ValidationError


class TestDeleteBlob:
    @pytest.mark.asyncio
    async def test_deletes_existing_file(self, file_store, storage_root):
        (storage_root / "photo.png").write_bytes(b"png")

        await file_store.delete_blob("photo.png")

        assert not (storage_root / "photo.png").exists()

    @pytest.mark.asyncio
    async def test_missing_file(self, file_store):
        with pytest.raises(FileStorageError) as exc_info:
            await file_store.delete_blob("never-uploaded.png")
        assert exc_info.value.reason == "missing"
        assert exc_info.value.context["name"] == "never-uploaded.png"

    @pytest.mark.asyncio
    async def test_permission_denied(self, file_store, storage_root):
        (storage_root / "locked.png").write_bytes(b"png")

        with patch("notesafe.stores.file_store.aiofiles.os.remove", side_effect=PermissionError("denied")):
            with pytest.raises(FileStorageError) as exc_info:
                await file_store.delete_blob("locked.png")

        assert exc_info.value.reason == "permission_denied"
        assert (storage_root / "locked.png").exists()

    @pytest.mark.asyncio
    async def test_other_os_error(self, file_store, storage_root):
        (storage_root / "busy.png").write_bytes(b"png")

        with patch("notesafe.stores.file_store.aiofiles.os.remove", side_effect=OSError("I/O error")):
            with pytest.raises(FileStorageError) as exc_info:
                await file_store.delete_blob("busy.png")

        assert exc_info.value.reason == "os_error"
        assert "I/O error" in exc_info.value.context["os_error"]

    @pytest.mark.asyncio
    async def test_nested_name_inside_root(self, file_store, storage_root):
        (storage_root / "2024").mkdir()
        (storage_root / "2024" / "scan.jpg").write_bytes(b"jpg")

        await file_store.delete_blob("2024/scan.jpg")

        assert not (storage_root / "2024" / "scan.jpg").exists()


class TestPathConfinement:
    @pytest.mark.asyncio
    async def test_traversal_rejected(self, file_store, tmp_path):
        outside = tmp_path / "secret.txt"
        outside.write_text("keep me")

        with pytest.raises(ValidationError):
            await file_store.delete_blob("../secret.txt")

        assert outside.exists()

    @pytest.mark.asyncio
    async def test_absolute_path_rejected(self, file_store, tmp_path):
        outside = tmp_path / "secret.txt"
        outside.write_text("keep me")

        with pytest.raises(ValidationError):
            await file_store.delete_blob(str(outside))

        assert outside.exists()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", "   ", "."])
    async def test_blank_or_root_name_rejected(self, file_store, name):
        with pytest.raises(ValidationError):
            await file_store.delete_blob(name)
