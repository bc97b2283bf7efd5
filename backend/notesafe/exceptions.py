"""
NoteSafe Backend — Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for the account deletion engine.
Why:   Targeted error handling: the cascade aborts on store errors, the cleanup
       worker absorbs file errors, and the HTTP layer maps each type to a status.
How:   Each exception carries a message and an optional context dict.
       Global handlers (registered in main.py) turn them into JSON error bodies.
Who:   Raised by stores and services; caught by the coordinator (abort + re-raise),
       the cleanup worker (recorded) and the global handlers.

Exception Hierarchy:
    NoteSafeError (base)
    ├── ValidationError              → 400 Bad Request
    ├── NotFoundError                → 404 Not Found (returned by the cascade, not raised)
    ├── FileStorageError             → 500 Internal Server Error
    └── DatabaseError                → 500 Internal Server Error (store error)
        ├── TransactionConflictError → 409 Conflict (safe to retry)
        └── CascadeIntegrityError    → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class NoteSafeError(Exception):
    """
    Base exception for all NoteSafe application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NoteSafeError):
    """
    Raised when caller input is unusable.

    When:    Blank user id, blob name escaping the storage root.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = dict(context or {})
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(NoteSafeError):
    """
    The requested record does not exist.

    The cascade engine hands this back inside a DeletionResult instead of
    raising it: a missing user is an expected outcome, not a failure. Routes
    raise it so the global handler renders a 404.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = dict(context or {})
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class FileStorageError(NoteSafeError):
    """
    Raised when a file system operation fails.

    When:    Image blob missing, permission denied, I/O error during delete.
    HTTP:    500 Internal Server Error

    ``reason`` is a short machine-friendly tag ("missing", "permission_denied",
    "os_error") used by the cleanup report.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        reason: str = "os_error",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = dict(context or {})
        ctx["reason"] = reason
        super().__init__(message=message, context=ctx)
        self.reason = reason


class DatabaseError(NoteSafeError):
    """
    Raised when a record store operation fails (the cascade's "store error").

    Security Note:
        The message returned to the client is always generic. Driver details
        (SQL, constraint names) stay in ``context`` and the logs.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class TransactionConflictError(DatabaseError):
    """
    The store rejected the transaction because of a concurrent writer.

    When:    Serialization failure or deadlock (SQLSTATE 40001 / 40P01),
             SQLite "database is locked".
    HTTP:    409 Conflict

    Nothing was committed, so the whole operation can be retried from the top.
    """

    def __init__(
        self,
        message: str = "The operation conflicted with a concurrent change. Please retry.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class CascadeIntegrityError(DatabaseError):
    """
    The note set changed underneath a running cascade.

    When:    A note listed for the user could not be loaded, or the bulk delete
             removed a different number of notes than were resolved.

    Raised inside the transaction, so the coordinator aborts and nothing of the
    partial cascade is persisted.
    """

    def __init__(
        self,
        message: str = "Account deletion was aborted because the user's notes changed during the operation.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
