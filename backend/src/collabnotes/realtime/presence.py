"""
Presence registry: which connections are in which note rooms.

A room exists only while the registry holds a non-empty member set for its
note id. Members are keyed by user id inside a room, so a user can hold at
most one entry per room. All methods are synchronous; under a single event
loop every mutation is atomic with respect to other coroutines.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional

from ..core.logging import get_logger
from ..core.schemas.realtime import MemberInfo, WireModel

if TYPE_CHECKING:
    from .connection import Connection

logger = get_logger("realtime.presence")


@dataclass(frozen=True)
class MemberEntry:
    """A connection actively present in one room."""

    connection: "Connection"
    user_id: str
    user_name: str

    @property
    def connection_id(self) -> str:
        return self.connection.connection_id

    def info(self) -> MemberInfo:
        return MemberInfo(user_id=self.user_id, user_name=self.user_name)


class PresenceRegistry:
    """note id -> {user id -> MemberEntry}."""

    def __init__(self) -> None:
        self._rooms: Dict[str, Dict[str, MemberEntry]] = {}

    def add(self, note_id: str, entry: MemberEntry) -> Optional[MemberEntry]:
        """Insert entry, returning the entry it displaced for the same user, if any."""
        room = self._rooms.setdefault(note_id, {})
        displaced = room.pop(entry.user_id, None)
        room[entry.user_id] = entry
        return displaced

    def remove(self, note_id: str, connection_id: str) -> Optional[MemberEntry]:
        """Remove the entry held by connection_id; drops the room when it empties."""
        room = self._rooms.get(note_id)
        if not room:
            return None

        for user_id, entry in room.items():
            if entry.connection_id == connection_id:
                del room[user_id]
                break
        else:
            return None

        if not room:
            del self._rooms[note_id]
        return entry

    def members(self, note_id: str) -> List[MemberEntry]:
        """Members in join order."""
        return list(self._rooms.get(note_id, {}).values())

    def is_member(self, note_id: str, connection_id: str) -> bool:
        return any(e.connection_id == connection_id for e in self._rooms.get(note_id, {}).values())

    def rooms_for(self, connection_id: str) -> List[str]:
        """Note ids of every room holding an entry for the connection."""
        return [
            note_id
            for note_id, room in self._rooms.items()
            if any(e.connection_id == connection_id for e in room.values())
        ]

    def has_room(self, note_id: str) -> bool:
        return note_id in self._rooms

    def fan_out(self, note_id: str, event: WireModel, exclude: Optional[str] = None) -> int:
        """Queue event for every member except connection id `exclude`.

        Returns how many connections accepted the frame. Delivery is best
        effort: closed or backed-up connections simply miss it.
        """
        frame = event.to_wire()
        delivered = 0
        for entry in self.members(note_id):
            if entry.connection_id == exclude:
                continue
            if entry.connection.send(frame):
                delivered += 1
        return delivered

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    @property
    def member_count(self) -> int:
        return sum(len(room) for room in self._rooms.values())

    def stats(self) -> dict:
        connection_ids = {
            e.connection_id for room in self._rooms.values() for e in room.values()
        }
        return {
            "rooms": self.room_count,
            "members": self.member_count,
            "connections": len(connection_ids),
        }

    def clear(self) -> None:
        if self._rooms:
            logger.info("Discarding presence registry", extra=self.stats())
        self._rooms.clear()
