"""
Database models.

Models included:
    - User: account with a global role (admin / editor / viewer)
    - Note: title + content owned by a user
    - Collaborator: per-note access grant for another user
"""

from .base import BaseModel
from .collaborator import Collaborator, CollaboratorRole
from .note import Note
from .user import User, UserRole

__all__ = [
    "BaseModel",
    "User",
    "UserRole",
    "Note",
    "Collaborator",
    "CollaboratorRole",
]
