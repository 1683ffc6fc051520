"""
Service layer interfaces and implementations.

The realtime package depends on the interfaces only; the concrete
services below are the database and JWT backed defaults.
"""

from .interfaces import (
    ICredentialVerifier,
    IHealthService,
    INoteAccessPolicy,
    INoteStore,
)

from .credential_service import CredentialService
from .health_service import HealthService
from .note_gateway import NoteGateway

__all__ = [
    # Interfaces
    "ICredentialVerifier",
    "INoteAccessPolicy",
    "INoteStore",
    "IHealthService",

    # Implementations
    "CredentialService",
    "NoteGateway",
    "HealthService",
]
