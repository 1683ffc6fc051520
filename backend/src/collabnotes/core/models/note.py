# Note model for user content
import uuid
from typing import TYPE_CHECKING, List

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel
from .types import GUID

if TYPE_CHECKING:
    from .collaborator import Collaborator
    from .user import User

TITLE_MAX_LENGTH = 200


class Note(BaseModel):
    """Note with a title and free-form content."""

    __tablename__ = "notes"

    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    owner_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    owner: Mapped["User"] = relationship("User", back_populates="notes")
    collaborators: Mapped[List["Collaborator"]] = relationship(
        "Collaborator",
        back_populates="note",
        cascade="all, delete-orphan",
        doc="Users invited to edit or view this note",
    )

    __table_args__ = (
        CheckConstraint(f"length(title) <= {TITLE_MAX_LENGTH}", name="ck_notes_title_len"),
        Index("idx_notes_owner_id", "owner_id"),
    )

    def __repr__(self) -> str:
        truncated = self.title if len(self.title) <= 30 else (self.title[:30] + "...")
        return f"<Note(title='{truncated}', owner_id={self.owner_id})>"

    def is_owned_by(self, user_id: uuid.UUID) -> bool:
        """Check if this note is owned by the specified user."""
        return self.owner_id == user_id
