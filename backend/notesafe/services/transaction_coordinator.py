"""
NoteSafe Backend — Transaction Coordinator (Account Cascade)
==============================================================

What:  Deletes a user together with every note they own, all-or-nothing, then
       hands the removed notes to image cleanup.
Why:   A user gone with notes left behind (or the reverse) is the one state the
       notes app must never reach. Files can't take part in the transaction,
       so they are only touched after the database outcome is final.
Who:   Called by AccountService (HTTP path) or directly as a library call.

Orchestration Flow:
    ┌──────────┐   ┌─────────────┐   ┌──────────────┐   ┌──────────────┐   ┌────────┐
    │  Open    │──▶│ Delete user │──▶│ Resolve notes│──▶│ Delete notes │──▶│ Commit │
    │  session │   │ (by key)    │   │ (in session) │   │ (bulk)       │   │        │
    └──────────┘   └─────────────┘   └──────────────┘   └──────────────┘   └────────┘
                         │ absent                   any store error │          │
                         ▼                                          ▼          ▼
                    abort, return NotFound               abort, re-raise   session released
                                                                               │
                                                                   image cleanup (post-commit only)

Guarantees:
    - Exactly one session per call, released exactly once on every path
    - Store errors abort the transaction and propagate unchanged
    - Image cleanup runs only after a successful commit, and its failures
      never change the returned outcome
"""

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from notesafe.exceptions import CascadeIntegrityError, NotFoundError, ValidationError
from notesafe.schemas.cascade import CascadeState, CleanupReport, DeletionResult
from notesafe.schemas.records import NoteRecord
from notesafe.services.cascade_resolver import CascadeResolver
from notesafe.services.image_cleanup import ImageCleanupWorker
from notesafe.stores.file_store import file_store
from notesafe.stores.record_store import RecordStore, record_store

logger = logging.getLogger(__name__)


class TransactionCoordinator:
    """
    Owns the lifecycle of one cascade delete per call.

    Stateless between calls: concurrent deletions of different users share
    nothing but the store, and their note sets are disjoint by owner.
    """

    def __init__(
        self,
        store: RecordStore,
        cleanup_worker: ImageCleanupWorker,
        resolver: Optional[CascadeResolver] = None,
    ):
        self.store = store
        self.cleanup_worker = cleanup_worker
        self.resolver = resolver or CascadeResolver(store)

    async def delete_user_and_notes(self, user_id: str, *, run_cleanup: bool = True) -> DeletionResult:
        """
        Delete ``user_id`` and all of their notes in one transaction.

        Args:
            user_id: Identifier of the user to remove (non-empty).
            run_cleanup: Delete the notes' images before returning. With False
                the caller gets result.notes and dispatches cleanup itself
                (always after this call returns, i.e. after commit).

        Returns:
            DeletionResult(deleted=True) on commit,
            DeletionResult(deleted=False, error=NotFoundError) if no such user.

        Raises:
            ValidationError: blank user_id (no session is opened)
            DatabaseError / TransactionConflictError / CascadeIntegrityError:
                the transaction was aborted; nothing was persisted
        """
        if not isinstance(user_id, str) or not user_id.strip():
            raise ValidationError(message="A user id is required", field="user_id")

        states: List[CascadeState] = [CascadeState.IDLE]

        def advance(state: CascadeState) -> None:
            states.append(state)
            logger.debug("Cascade %s: %s", user_id, state.value)

        notes: List[NoteRecord] = []
        found = False

        async with self.store.session() as session:
            advance(CascadeState.SESSION_OPEN)
            try:
                user = await self.store.delete_one(session, "users", user_id)
                if user is None:
                    await self.store.abort(session)
                    advance(CascadeState.ABORTED)
                else:
                    found = True
                    advance(CascadeState.USER_DELETED)
                    notes = await self._delete_notes(session, user_id)
                    advance(CascadeState.NOTES_DELETED)
                    await self.store.commit(session)
                    advance(CascadeState.COMMITTED)
            except Exception as e:
                logger.warning(
                    "Cascade for user %s failed at %s (%s); rolling back",
                    user_id, states[-1].value, type(e).__name__,
                )
                await self._abort_quietly(session, user_id)
                advance(CascadeState.ABORTED)
                raise
        # store.session() has released the session by here, on every path
        advance(CascadeState.SESSION_CLOSED)

        if not found:
            logger.info("Cascade for user %s: user not found, nothing deleted", user_id)
            return DeletionResult(
                user_id=user_id,
                deleted=False,
                error=NotFoundError(resource="user", resource_id=user_id),
                states=states,
            )

        logger.info("Cascade for user %s committed: %d note(s) deleted", user_id, len(notes))

        cleanup: Optional[CleanupReport] = None
        if run_cleanup:
            cleanup = await self._cleanup(user_id, notes)
            advance(CascadeState.IMAGES_CLEANED_UP)

        return DeletionResult(
            user_id=user_id,
            deleted=True,
            notes=notes,
            cleanup=cleanup,
            states=states,
        )

    async def _delete_notes(self, session: AsyncSession, user_id: str) -> List[NoteRecord]:
        notes = await self.resolver.list_notes_for_user(session, user_id)
        removed = await self.store.delete_many(session, "notes", {"owner_user_id": user_id})
        if removed != len(notes):
            raise CascadeIntegrityError(
                context={"user_id": user_id, "resolved": len(notes), "deleted": removed}
            )
        return notes

    async def _abort_quietly(self, session: AsyncSession, user_id: str) -> None:
        # The original error is what the caller must see; an abort failure is
        # only logged (closing the session rolls back regardless)
        try:
            await self.store.abort(session)
        except Exception:
            logger.error("Abort failed for cascade of user %s", user_id, exc_info=True)

    async def _cleanup(self, user_id: str, notes: List[NoteRecord]) -> Optional[CleanupReport]:
        try:
            return await self.cleanup_worker.cleanup_images(notes)
        except Exception:
            # Committed is committed; a broken worker must not turn it into a failure
            logger.error("Image cleanup crashed for user %s", user_id, exc_info=True)
            return None


# ── Singleton Instance ────────────────────────────────────────────────────
transaction_coordinator = TransactionCoordinator(
    store=record_store,
    cleanup_worker=ImageCleanupWorker(file_store),
)
