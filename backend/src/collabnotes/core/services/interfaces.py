"""
Service interfaces.

The realtime layer only talks to storage and auth through these contracts,
so tests and alternative backends can plug in their own implementations.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..schemas.auth import Identity
from ..schemas.common import HealthCheckResponse
from ..schemas.notes import NoteSnapshot


class ICredentialVerifier(ABC):
    """Resolves a bearer credential to an identity."""

    @abstractmethod
    async def verify_credential(self, token: str) -> Identity:
        """Return the identity behind token or raise AuthenticationError."""
        pass


class INoteAccessPolicy(ABC):
    """Decides who may join a note's room."""

    @abstractmethod
    async def user_has_note_access(self, user_id: str, role: str, note_id: str) -> bool:
        """True for the owner, a collaborator or an admin."""
        pass


class INoteStore(ABC):
    """Key-based note storage used by the edit relay."""

    @abstractmethod
    async def get_note(self, note_id: str) -> Optional[NoteSnapshot]:
        """Read note by id, None if it does not exist."""
        pass

    @abstractmethod
    async def update_note(self, note_id: str, fields: Dict[str, Any]) -> NoteSnapshot:
        """Write the given fields only; raise NoteNotFoundError if the note is gone."""
        pass


class IHealthService(ABC):
    """Health check service."""

    @abstractmethod
    async def get_health_status(self) -> HealthCheckResponse:
        """Get app health status."""
        pass

    @abstractmethod
    async def check_database_health(self) -> Dict[str, Any]:
        """Check DB connection."""
        pass

    @abstractmethod
    async def check_redis_health(self) -> Dict[str, Any]:
        """Check Redis connection."""
        pass

    @abstractmethod
    def check_realtime_health(self) -> Dict[str, Any]:
        """Report presence registry size."""
        pass
