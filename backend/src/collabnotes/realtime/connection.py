"""
Authenticated realtime connections and the gate that creates them.
"""

import asyncio
import uuid
from typing import Optional

from ..core.exceptions import AuthenticationError
from ..core.logging import get_logger
from ..core.schemas.auth import Identity
from ..core.schemas.realtime import WireModel
from ..core.services.interfaces import ICredentialVerifier

logger = get_logger("realtime.connection")


class Connection:
    """One live transport session with a verified identity.

    Outbound frames go through a bounded queue drained by the owning
    session's writer task, so fan-out never awaits socket I/O.
    """

    def __init__(self, identity: Identity, outbox_size: int = 256, connection_id: Optional[str] = None):
        self.identity = identity
        self.connection_id = connection_id or uuid.uuid4().hex
        self.outbox: asyncio.Queue = asyncio.Queue(maxsize=outbox_size)
        self.closed = False
        self.dropped_frames = 0

    @property
    def user_id(self) -> str:
        return self.identity.user_id

    @property
    def user_name(self) -> str:
        return self.identity.user_name

    @property
    def role(self) -> str:
        return self.identity.role

    def send(self, frame) -> bool:
        """Queue a frame (dict or WireModel); False if it was dropped."""
        if self.closed:
            return False
        if isinstance(frame, WireModel):
            frame = frame.to_wire()
        try:
            self.outbox.put_nowait(frame)
        except asyncio.QueueFull:
            self.dropped_frames += 1
            logger.debug(
                "Outbox full, dropping frame",
                extra={"connection_id": self.connection_id, "frame_type": frame.get("type")},
            )
            return False
        return True

    def close(self) -> None:
        self.closed = True

    def __repr__(self) -> str:
        return f"<Connection(id={self.connection_id}, user_id={self.user_id})>"


class ConnectionGate:
    """Authenticates a connection attempt exactly once, at handshake time."""

    def __init__(self, verifier: ICredentialVerifier, outbox_size: int = 256):
        self.verifier = verifier
        self.outbox_size = outbox_size

    async def authenticate(self, token: Optional[str]) -> Connection:
        """Return a new Connection or raise AuthenticationError."""
        if not token:
            raise AuthenticationError("Missing credential")

        try:
            identity = await self.verifier.verify_credential(token)
        except AuthenticationError:
            raise
        except Exception as e:
            # backend trouble during verification still means "not authenticated"
            logger.error(f"Credential verification failed: {e}", exc_info=e)
            raise AuthenticationError("Credential verification unavailable") from e

        connection = Connection(identity, outbox_size=self.outbox_size)
        logger.info(
            "Connection authenticated",
            extra={
                "connection_id": connection.connection_id,
                "user_id": identity.user_id,
                "role": identity.role,
            },
        )
        return connection
