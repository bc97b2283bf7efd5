"""
NoteSafe Backend — Note SQLAlchemy Model
==========================================

What:  ORM model representing the `notes` table.
Why:   Maps note rows to Python objects for type-safe queries.
Who:   Read and bulk-deleted by the cascade engine; created and edited by the
       notes CRUD endpoints (outside this package).

Table Design Rationale:
    - image: Filename relative to STORAGE_ROOT; the blob is not tracked
      transactionally, only cleaned up after a committed delete
    - owner_user_id: Non-nullable FK to users.id. The constraint is
      DEFERRABLE INITIALLY DEFERRED so a cascade may delete the user row first
      and the notes second inside one transaction; PostgreSQL checks it at
      COMMIT, which is exactly when "no note references a missing user" must hold.

    Index on owner_user_id:
        The cascade filters notes by owner twice (resolve, then bulk delete).
        Without the index both would be sequential scans.
"""

import uuid

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from notesafe.database import Base


class Note(Base):
    """
    A user's text note with one attached image.

    Lifecycle:
        1. Created/edited by ordinary CRUD
        2. Deleted individually by CRUD, or in bulk by the account cascade
    """

    __tablename__ = "notes"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=lambda: uuid.uuid4().hex,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Stored as the client sent it (the notes app sorts on it lexically)
    date: Mapped[str] = mapped_column(String(64), nullable=False)

    image: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Image filename relative to the storage root",
    )

    owner_user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("users.id", deferrable=True, initially="DEFERRED"),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_notes_owner_user_id", "owner_user_id"),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, owner_user_id='{self.owner_user_id}')>"
