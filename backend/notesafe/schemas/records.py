"""
NoteSafe Backend — Record Types
=================================

What:  Explicit, validated shapes for the rows the cascade engine handles.
Why:   The engine reads notes inside a transaction and keeps using them after
       the session is gone (image cleanup). Plain ORM objects would be tied to
       the session; these are detached, immutable values checked once at
       construction instead of ad hoc key lookups later.
How:   Pydantic models with `from_attributes` so an ORM row converts directly:
       NoteRecord.model_validate(note_row).
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class UserRecord(BaseModel):
    """A user row as seen by the cascade (credentials are never copied out)."""

    id: str = Field(description="Unique user identifier")
    username: str = Field(description="Display name")
    email: str = Field(description="Unique e-mail address")
    profile: Optional[str] = Field(default=None, description="Profile image reference")

    model_config = {"from_attributes": True, "frozen": True}

    @field_validator("id")
    @classmethod
    def id_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class NoteRecord(BaseModel):
    """
    A note row resolved by the cascade.

    Only id, image and owner_user_id are required by the engine; the remaining
    fields ride along so the deletion response can echo what was removed.
    """

    id: str = Field(description="Unique note identifier")
    owner_user_id: str = Field(description="Identifier of the owning user")
    image: str = Field(description="Image filename relative to the storage root")
    title: str = Field(default="", description="Note title")
    content: str = Field(default="", description="Note body")
    date: str = Field(default="", description="Note date as stored by the notes app")

    model_config = {"from_attributes": True, "frozen": True}

    @field_validator("id", "owner_user_id", "image")
    @classmethod
    def required_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v
