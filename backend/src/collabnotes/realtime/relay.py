"""
Edit relay (persist then fan out) and ephemeral signal relay (fan out only).
"""

from typing import Any, Optional

from ..core.exceptions import NotRoomMemberError, NoteNotFoundError
from ..core.logging import get_logger
from ..core.schemas.notes import NoteFields, NoteSnapshot
from ..core.schemas.realtime import CursorUpdated, EditApplied, MemberInfo, OperationError
from ..core.services.interfaces import INoteStore
from .connection import Connection
from .presence import PresenceRegistry

logger = get_logger("realtime.relay")

UPDATE_FAILED_MESSAGE = "Failed to update note"


class EditRelay:
    """Applies edit submissions with last-write-wins semantics."""

    def __init__(
        self,
        registry: PresenceRegistry,
        note_store: INoteStore,
        require_membership: bool = False,
    ):
        self.registry = registry
        self.note_store = note_store
        self.require_membership = require_membership

    async def submit(
        self,
        connection: Connection,
        note_id: str,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> Optional[NoteSnapshot]:
        """Persist the present fields and broadcast the result to the other members.

        Returns the stored note, or None when the edit was rejected (the
        sender has already been sent an operation-error).
        """
        log_ctx = {
            "connection_id": connection.connection_id,
            "user_id": connection.user_id,
            "note_id": note_id,
        }

        if self.require_membership and not self.registry.is_member(note_id, connection.connection_id):
            logger.info("Edit from non-member rejected", extra=log_ctx)
            connection.send(OperationError(message=NotRoomMemberError.client_message, note_id=note_id))
            return None

        fields = NoteFields(title=title, content=content).present()

        try:
            if await self.note_store.get_note(note_id) is None:
                raise NoteNotFoundError(f"Note {note_id} not found")
            note = await self.note_store.update_note(note_id, fields)
        except NoteNotFoundError as e:
            logger.info(f"Edit rejected: {e.detail}", extra=log_ctx)
            connection.send(OperationError(message=NoteNotFoundError.client_message, note_id=note_id))
            return None
        except Exception as e:
            logger.error(f"Edit failed: {e}", extra=log_ctx, exc_info=e)
            connection.send(OperationError(message=UPDATE_FAILED_MESSAGE, note_id=note_id))
            return None

        delivered = self.registry.fan_out(
            note_id,
            EditApplied(
                note_id=note_id,
                title=note.title,
                content=note.content,
                editor=MemberInfo(user_id=connection.user_id, user_name=connection.user_name),
            ),
            exclude=connection.connection_id,
        )
        logger.info("Edit applied", extra={**log_ctx, "fields": sorted(fields), "peers": delivered})
        return note


class SignalRelay:
    """Best-effort relay for transient signals such as cursor positions."""

    def __init__(self, registry: PresenceRegistry):
        self.registry = registry

    def cursor(self, connection: Connection, note_id: str, position: Any) -> int:
        """Fan out a cursor position; returns how many peers it reached."""
        delivered = self.registry.fan_out(
            note_id,
            CursorUpdated(
                note_id=note_id,
                user_id=connection.user_id,
                user_name=connection.user_name,
                position=position,
            ),
            exclude=connection.connection_id,
        )
        logger.debug(
            "Cursor signal",
            extra={"connection_id": connection.connection_id, "note_id": note_id, "peers": delivered},
        )
        return delivered
