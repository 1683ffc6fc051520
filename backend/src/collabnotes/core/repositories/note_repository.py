"""Note repository for database operations."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.note import Note

logger = logging.getLogger(__name__)

# Columns a realtime edit may touch
EDITABLE_FIELDS = frozenset({"title", "content"})


class NoteRepository:
    """Repository for note database operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_note(self, note_data: dict) -> Note:
        """Create new note."""
        note = Note(**note_data)
        self.session.add(note)
        await self.session.commit()
        await self.session.refresh(note)
        return note

    async def get_by_id(self, note_id: UUID) -> Optional[Note]:
        """Get note by ID."""
        stmt = select(Note).where(Note.id == note_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def is_owned_by(self, note_id: UUID, user_id: UUID) -> bool:
        """Check whether the user owns the note."""
        stmt = select(Note.id).where(and_(Note.id == note_id, Note.owner_id == user_id))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def update_fields(self, note_id: UUID, update_data: dict) -> Optional[Note]:
        """Apply a partial update; keys missing from update_data are left as stored."""
        unknown = set(update_data) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not editable: {', '.join(sorted(unknown))}")

        note = await self.get_by_id(note_id)
        if not note:
            return None

        for key, value in update_data.items():
            setattr(note, key, value)

        await self.session.commit()
        await self.session.refresh(note)
        logger.debug(f"Updated note {note_id} fields {sorted(update_data)}")
        return note
