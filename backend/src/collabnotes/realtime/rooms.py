"""
Room membership: join, leave and disconnect cleanup.

Only this module inserts into or removes from the presence registry.
"""

from typing import List

from ..core.exceptions import AccessDeniedError
from ..core.logging import get_logger
from ..core.schemas.realtime import MemberJoined, MemberLeft, OperationError, RoomMembers
from ..core.services.interfaces import INoteAccessPolicy
from .connection import Connection
from .presence import MemberEntry, PresenceRegistry

logger = get_logger("realtime.rooms")


class RoomMembership:
    """Join/leave protocol over a presence registry."""

    def __init__(self, registry: PresenceRegistry, access_policy: INoteAccessPolicy):
        self.registry = registry
        self.access_policy = access_policy

    async def join(self, connection: Connection, note_id: str) -> bool:
        """Admit connection into the note's room. Returns False when refused."""
        log_ctx = {
            "connection_id": connection.connection_id,
            "user_id": connection.user_id,
            "note_id": note_id,
        }

        try:
            allowed = await self.access_policy.user_has_note_access(
                connection.user_id, connection.role, note_id
            )
        except Exception as e:
            logger.warning(f"Access check failed, denying join: {e}", extra=log_ctx)
            allowed = False

        if not allowed:
            logger.info("Join denied", extra=log_ctx)
            connection.send(OperationError(message=AccessDeniedError.client_message, note_id=note_id))
            return False

        # the socket may have gone away while the access check was in flight
        if connection.closed:
            logger.debug("Connection closed during join, not admitting", extra=log_ctx)
            return False

        # no awaits from here on: registry update and fan-out happen as one step
        entry = MemberEntry(connection=connection, user_id=connection.user_id, user_name=connection.user_name)
        displaced = self.registry.add(note_id, entry)
        rejoined = displaced is not None and displaced.connection_id == connection.connection_id
        if displaced is not None and not rejoined:
            logger.info(
                "Replaced stale member entry",
                extra={**log_ctx, "stale_connection_id": displaced.connection_id},
            )

        # peers already know about this connection
        if not rejoined:
            self.registry.fan_out(
                note_id,
                MemberJoined(note_id=note_id, user_id=connection.user_id, user_name=connection.user_name),
                exclude=connection.connection_id,
            )
        connection.send(
            RoomMembers(note_id=note_id, members=[m.info() for m in self.registry.members(note_id)])
        )

        logger.info("Joined room", extra={**log_ctx, "members": len(self.registry.members(note_id))})
        return True

    def leave(self, connection: Connection, note_id: str) -> bool:
        """Remove connection from the room. False if it was not a member."""
        entry = self.registry.remove(note_id, connection.connection_id)
        if entry is None:
            return False

        self.registry.fan_out(
            note_id,
            MemberLeft(note_id=note_id, user_id=entry.user_id, user_name=entry.user_name),
        )
        logger.info(
            "Left room",
            extra={
                "connection_id": connection.connection_id,
                "user_id": entry.user_id,
                "note_id": note_id,
                "room_open": self.registry.has_room(note_id),
            },
        )
        return True

    def disconnect(self, connection: Connection) -> List[str]:
        """Leave every room the connection is in. Safe to call more than once."""
        left = [note_id for note_id in self.registry.rooms_for(connection.connection_id)
                if self.leave(connection, note_id)]
        if left:
            logger.info(
                "Disconnect cleanup",
                extra={"connection_id": connection.connection_id, "rooms": left},
            )
        return left
