"""
Process-wide container for the realtime components.
"""

from typing import Dict, Optional

from ..config import Settings, get_settings
from ..core.logging import get_logger
from ..core.services.interfaces import ICredentialVerifier, INoteAccessPolicy, INoteStore
from .connection import Connection, ConnectionGate
from .presence import PresenceRegistry
from .relay import EditRelay, SignalRelay
from .rooms import RoomMembership

logger = get_logger("realtime.hub")


class CollaborationHub:
    """Wires the gate, registry, membership and relays together.

    One hub exists per application instance; it is built in the lifespan
    and kept on ``app.state.hub``.
    """

    def __init__(
        self,
        verifier: ICredentialVerifier,
        access_policy: INoteAccessPolicy,
        note_store: INoteStore,
        settings: Optional[Settings] = None,
        registry: Optional[PresenceRegistry] = None,
    ):
        settings = settings or get_settings()
        self.registry = registry or PresenceRegistry()
        self.gate = ConnectionGate(verifier, outbox_size=settings.realtime_outbox_size)
        self.rooms = RoomMembership(self.registry, access_policy)
        self.edits = EditRelay(
            self.registry,
            note_store,
            require_membership=settings.realtime_require_membership_for_edits,
        )
        self.signals = SignalRelay(self.registry)
        self.idle_timeout = settings.realtime_idle_timeout_seconds
        self._connections: Dict[str, Connection] = {}

    def register(self, connection: Connection) -> None:
        self._connections[connection.connection_id] = connection

    def unregister(self, connection: Connection) -> None:
        self._connections.pop(connection.connection_id, None)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def stats(self) -> dict:
        return {**self.registry.stats(), "open_connections": self.connection_count}

    def shutdown(self) -> None:
        """Mark every live connection closed and discard presence state."""
        for connection in list(self._connections.values()):
            connection.close()
        self.registry.clear()
        logger.info("Realtime hub shut down")
