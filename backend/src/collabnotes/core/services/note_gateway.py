"""Note storage and access checks for the realtime layer."""

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..exceptions import NoteNotFoundError
from ..models.user import UserRole
from ..repositories.collaborator_repository import CollaboratorRepository
from ..repositories.note_repository import NoteRepository
from ..schemas.notes import NoteSnapshot
from .interfaces import INoteAccessPolicy, INoteStore

logger = logging.getLogger(__name__)


def _parse_uuid(value: str) -> Optional[UUID]:
    try:
        return UUID(str(value))
    except ValueError:
        return None


class NoteGateway(INoteAccessPolicy, INoteStore):
    """Opens one short session per call; websocket sessions outlive request scopes."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def user_has_note_access(self, user_id: str, role: str, note_id: str) -> bool:
        note_uuid = _parse_uuid(note_id)
        user_uuid = _parse_uuid(user_id)
        if note_uuid is None or user_uuid is None:
            return False

        async with self.session_factory() as session:
            note_repo = NoteRepository(session)
            if role == UserRole.ADMIN.value:
                # admins see every existing note
                return await note_repo.get_by_id(note_uuid) is not None
            if await note_repo.is_owned_by(note_uuid, user_uuid):
                return True
            collaborator_ids = await CollaboratorRepository(session).list_user_ids(note_uuid)
            return user_uuid in collaborator_ids

    async def get_note(self, note_id: str) -> Optional[NoteSnapshot]:
        note_uuid = _parse_uuid(note_id)
        if note_uuid is None:
            return None

        async with self.session_factory() as session:
            note = await NoteRepository(session).get_by_id(note_uuid)
            return NoteSnapshot.from_model(note) if note else None

    async def update_note(self, note_id: str, fields: Dict[str, Any]) -> NoteSnapshot:
        note_uuid = _parse_uuid(note_id)
        if note_uuid is None:
            raise NoteNotFoundError(f"Invalid note id {note_id!r}")

        async with self.session_factory() as session:
            note = await NoteRepository(session).update_fields(note_uuid, fields)
            if note is None:
                raise NoteNotFoundError(f"Note {note_id} vanished before update")
            logger.info(f"Persisted realtime edit for note {note_id}", extra={"fields": sorted(fields)})
            return NoteSnapshot.from_model(note)

