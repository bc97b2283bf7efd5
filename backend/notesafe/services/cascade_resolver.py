"""
NoteSafe Backend — Cascade Resolver
=====================================

What:  Finds every note a user owns, inside the cascade's own session.
Why:   The read must see the same snapshot the subsequent bulk delete acts on,
       so it runs in the caller's transaction rather than a fresh session.
How:   Two steps, both in the supplied session:
         1. id projection of notes with owner_user_id == user_id (unordered)
         2. ordered load of those ids as full records
       A note that is listed in step 1 but gone in step 2 means the note set
       changed mid-cascade; the resolver raises CascadeIntegrityError and the
       coordinator aborts the whole operation.
"""

import logging
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from notesafe.exceptions import CascadeIntegrityError
from notesafe.schemas.records import NoteRecord
from notesafe.stores.record_store import RecordStore

logger = logging.getLogger(__name__)


class CascadeResolver:
    def __init__(self, store: RecordStore):
        self.store = store

    async def list_notes_for_user(self, session: AsyncSession, user_id: str) -> List[NoteRecord]:
        """
        Resolve the complete set of notes owned by ``user_id``.

        Returns:
            NoteRecord values (id, image, owner and content), no ordering guarantee.

        Raises:
            CascadeIntegrityError: a listed note vanished before it could be loaded
            DatabaseError: any store failure (propagated as-is)
        """
        rows = await self.store.find_many(
            session, "notes", {"owner_user_id": user_id}, fields=["id"]
        )
        note_ids = [row["id"] for row in rows]
        if not note_ids:
            logger.debug("User %s owns no notes", user_id)
            return []

        notes = await self.store.find_by_keys(session, "notes", note_ids, ordered=True)
        if len(notes) != len(note_ids):
            missing = sorted(set(note_ids) - {note.id for note in notes})
            logger.error(
                "Notes of user %s disappeared mid-cascade: %s", user_id, missing
            )
            raise CascadeIntegrityError(
                context={"user_id": user_id, "missing_note_ids": missing}
            )

        records = [NoteRecord.model_validate(note) for note in notes]
        logger.debug("Resolved %d note(s) for user %s", len(records), user_id)
        return records
