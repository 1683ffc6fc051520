"""Collaborator repository for database operations."""

from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.collaborator import Collaborator


class CollaboratorRepository:
    """Repository for note collaborator grants."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add_collaborator(self, note_id: UUID, user_id: UUID, role: str = "viewer") -> Collaborator:
        """Grant a user access to a note."""
        collaborator = Collaborator(note_id=note_id, user_id=user_id, role=role)
        self.session.add(collaborator)
        await self.session.commit()
        await self.session.refresh(collaborator)
        return collaborator

    async def list_user_ids(self, note_id: UUID) -> List[UUID]:
        """List collaborator user IDs for a note."""
        stmt = (
            select(Collaborator.user_id)
            .where(Collaborator.note_id == note_id)
            .order_by(Collaborator.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars())

