"""
NoteSafe Backend — User SQLAlchemy Model
==========================================

What:  ORM model representing the `users` table.
Who:   Created at registration (outside this package); destroyed only by the
       account cascade, which removes the user's notes in the same transaction.

No ORM relationship to Note is declared on purpose: the cascade deletes notes
explicitly with one bulk statement, and an ORM-level cascade would load and
delete them row by row behind the coordinator's back.
"""

import uuid
from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from notesafe.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=lambda: uuid.uuid4().hex,
    )
    username: Mapped[str] = mapped_column(String(150), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)

    # Hash only; token issuance and verification live in the auth service
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Optional profile image reference
    profile: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
