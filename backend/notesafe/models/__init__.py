# Models package init
from notesafe.models.note import Note
from notesafe.models.user import User

__all__ = ["Note", "User"]
