"""
Note schemas used by the realtime layer's storage delegate.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class NoteSnapshot(BaseModel):
    """Persisted note state as seen after a read or write."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    content: str
    owner_id: str
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, note) -> "NoteSnapshot":
        return cls(
            id=str(note.id),
            title=note.title,
            content=note.content,
            owner_id=str(note.owner_id),
            updated_at=getattr(note, "updated_at", None),
        )


class NoteFields(BaseModel):
    """Partial note update; fields left as None are not written."""

    title: Optional[str] = Field(default=None, max_length=200)
    content: Optional[str] = None

    def present(self) -> dict:
        return self.model_dump(exclude_none=True)
