# Named collaborators on a note
import uuid
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel
from .types import GUID

if TYPE_CHECKING:
    from .note import Note
    from .user import User


class CollaboratorRole(str, Enum):
    """Per-note permission level."""

    EDITOR = "editor"
    VIEWER = "viewer"


class Collaborator(BaseModel):
    """Grants a user access to somebody else's note."""

    __tablename__ = "collaborators"

    note_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("notes.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(
        String(20), default=CollaboratorRole.VIEWER.value, nullable=False
    )

    note: Mapped["Note"] = relationship("Note", back_populates="collaborators")
    user: Mapped["User"] = relationship("User", back_populates="collaborations")

    __table_args__ = (
        UniqueConstraint("note_id", "user_id", name="uq_collaborators_note_user"),
        CheckConstraint("role IN ('editor', 'viewer')", name="ck_collaborators_role"),
        Index("idx_collaborators_note_id", "note_id"),
        Index("idx_collaborators_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Collaborator(note_id={self.note_id}, user_id={self.user_id}, role={self.role})>"
