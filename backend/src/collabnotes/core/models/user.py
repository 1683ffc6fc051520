"""
User model. Accounts are created by the main app; the realtime layer only reads them.
"""

from enum import Enum
from typing import TYPE_CHECKING, List

from sqlalchemy import Boolean, CheckConstraint, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel

if TYPE_CHECKING:
    from .collaborator import Collaborator
    from .note import Note


class UserRole(str, Enum):
    """Account-wide roles."""

    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class User(BaseModel):
    """User account."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(String(20), default=UserRole.VIEWER.value, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    notes: Mapped[List["Note"]] = relationship(
        "Note", back_populates="owner", cascade="all, delete-orphan"
    )
    collaborations: Mapped[List["Collaborator"]] = relationship(
        "Collaborator", back_populates="user", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'editor', 'viewer')", name="ck_users_role"),
        Index("idx_users_email", "email"),
    )

    def __repr__(self) -> str:
        return f"<User(email='{self.email}', role='{self.role}')>"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value
