"""
NoteSafe Backend — Cascade & API Schemas
==========================================

What:  Result types of the account cascade, plus the HTTP response models.
Why:   The coordinator, the cleanup worker and the route exchange these instead
       of loose tuples/dicts, so every outcome has one well-known shape.

State machine (CascadeState):
    IDLE → SESSION_OPEN → USER_DELETED → NOTES_DELETED → COMMITTED
         → SESSION_CLOSED → IMAGES_CLEANED_UP
    SESSION_OPEN | USER_DELETED | NOTES_DELETED → ABORTED → SESSION_CLOSED
"""

import enum
from typing import List, Optional

from pydantic import BaseModel, Field

from notesafe.exceptions import NotFoundError
from notesafe.schemas.records import NoteRecord


class CascadeState(str, enum.Enum):
    IDLE = "idle"
    SESSION_OPEN = "session_open"
    USER_DELETED = "user_deleted"
    NOTES_DELETED = "notes_deleted"
    COMMITTED = "committed"
    ABORTED = "aborted"
    SESSION_CLOSED = "session_closed"
    IMAGES_CLEANED_UP = "images_cleaned_up"


# ══════════════════════════════════════════════════════════════════════════
# Image Cleanup
# ══════════════════════════════════════════════════════════════════════════


class CleanupFailure(BaseModel):
    """One image that could not be deleted. Never escalated; logged and reported."""

    note_id: str
    image: str
    reason: str = Field(description="missing, permission_denied, invalid_path or os_error")
    detail: str = Field(default="", description="OS error text, for logs")


class CleanupReport(BaseModel):
    """
    Aggregated outcome of a post-commit image cleanup.

    attempted: every image name a deletion was tried for, in completion order
    succeeded: images removed from storage
    failed:    images left behind (orphans), with the reason
    """

    attempted: List[str] = Field(default_factory=list)
    succeeded: List[str] = Field(default_factory=list)
    failed: List[CleanupFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


# ══════════════════════════════════════════════════════════════════════════
# Cascade Result
# ══════════════════════════════════════════════════════════════════════════


class DeletionResult(BaseModel):
    """
    Outcome of TransactionCoordinator.delete_user_and_notes().

    deleted=True,  error=None            → user and notes committed as deleted
    deleted=False, error=NotFoundError   → no such user; nothing changed

    Store failures are raised, never stored here.
    cleanup is None when cleanup was not run inline (background dispatch).
    """

    user_id: str
    deleted: bool
    error: Optional[NotFoundError] = None
    notes: List[NoteRecord] = Field(default_factory=list)
    cleanup: Optional[CleanupReport] = None
    states: List[CascadeState] = Field(default_factory=list)

    model_config = {"arbitrary_types_allowed": True}


# ══════════════════════════════════════════════════════════════════════════
# HTTP Response Models
# ══════════════════════════════════════════════════════════════════════════


class DeleteAccountResponse(BaseModel):
    """Returned by DELETE /api/users/{user_id}."""

    message: str = Field(default="User and notes deleted successfully")
    user_id: str
    deleted_note_ids: List[str] = Field(default_factory=list)
    image_cleanup: str = Field(
        description="'scheduled' when running after the response, otherwise 'completed', 'partial' or 'failed'"
    )
    failed_images: List[CleanupFailure] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    storage: str = Field(description="writable or unavailable")
    uptime_seconds: float


class ErrorResponse(BaseModel):
    error: str
    message: str
    request_id: str = ""
