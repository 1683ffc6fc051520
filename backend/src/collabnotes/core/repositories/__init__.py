"""Repository layer for data access."""

from .collaborator_repository import CollaboratorRepository
from .note_repository import NoteRepository
from .user_repository import UserRepository

__all__ = [
    "UserRepository",
    "NoteRepository",
    "CollaboratorRepository",
]
