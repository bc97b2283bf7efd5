"""
NoteSafe Backend — Account Service
====================================

What:  Entry point for account deletion used by the HTTP layer.
Why:   The coordinator deliberately surfaces write conflicts to its caller
       instead of retrying inside a transaction it already aborted. This layer
       is that caller: it re-runs the whole cascade (fresh session each time)
       when the store reports a conflict.
How:   Tenacity AsyncRetrying around TransactionCoordinator.delete_user_and_notes,
       retrying ONLY TransactionConflictError, exponential backoff with jitter.
       Other store errors propagate on the first failure.

Retry Safety:
    A conflicted attempt is fully rolled back and never reaches image cleanup,
    so re-running it can't double-delete anything. If a concurrent request
    wins the race, the retry simply observes NotFound.
"""

import logging
from typing import Iterable, Optional

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from notesafe.config import settings
from notesafe.exceptions import TransactionConflictError
from notesafe.middleware.request_id import request_id_var
from notesafe.schemas.cascade import CleanupReport, DeletionResult
from notesafe.schemas.records import NoteRecord
from notesafe.services.transaction_coordinator import TransactionCoordinator, transaction_coordinator

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(
        self,
        coordinator: TransactionCoordinator,
        max_attempts: Optional[int] = None,
        min_wait: Optional[float] = None,
        max_wait: Optional[float] = None,
    ):
        self.coordinator = coordinator
        self.max_attempts = max_attempts or settings.conflict_retry_attempts
        self.min_wait = settings.conflict_retry_min_wait if min_wait is None else min_wait
        self.max_wait = settings.conflict_retry_max_wait if max_wait is None else max_wait

    async def delete_account(self, user_id: str, *, run_cleanup: bool = True) -> DeletionResult:
        """
        Delete a user and their notes, retrying write conflicts.

        Returns:
            The coordinator's DeletionResult (NotFound is returned, not raised).

        Raises:
            TransactionConflictError: still conflicting after max_attempts
            DatabaseError: any other store failure (not retried)
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(TransactionConflictError),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.min_wait,
                max=self.max_wait,
                jitter=self.min_wait,
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                result = await self.coordinator.delete_user_and_notes(
                    user_id, run_cleanup=run_cleanup
                )
        return result

    async def cleanup_images(
        self,
        user_id: str,
        notes: Iterable[NoteRecord],
        request_id: Optional[str] = None,
    ) -> CleanupReport:
        """
        Post-commit image cleanup dispatched after the HTTP response.

        What:  Runs as a FastAPI background task once DELETE has answered.
        Why:   The committed outcome is already final; the client shouldn't wait
               on disk I/O that can't change it.
        How:   ``request_id`` is re-bound for the duration of the cleanup so its
               log lines still carry the ID of the request that deleted the notes.
        """
        token = request_id_var.set(request_id) if request_id else None
        try:
            report = await self.coordinator.cleanup_worker.cleanup_images(notes)
            logger.info(
                "Background image cleanup for user %s: %d removed, %d orphaned",
                user_id,
                len(report.succeeded),
                len(report.failed),
            )
            return report
        finally:
            if token is not None:
                request_id_var.reset(token)


# ── Singleton Instance ────────────────────────────────────────────────────
account_service = AccountService(transaction_coordinator)
