"""Credential verification backed by JWT + the users table."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ...security import get_user_id_from_token
from ..exceptions import AuthenticationError
from ..repositories.user_repository import UserRepository
from ..schemas.auth import Identity
from .interfaces import ICredentialVerifier


class CredentialService(ICredentialVerifier):
    """Resolves access tokens to identities."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def verify_credential(self, token: str) -> Identity:
        if not token:
            raise AuthenticationError("Missing credential")

        # covers malformed, expired, bad signature and revoked tokens
        user_id = await get_user_id_from_token(token)
        if user_id is None:
            raise AuthenticationError("Invalid or expired token")

        async with self.session_factory() as session:
            user = await UserRepository(session).get_by_id(user_id)

        if not user:
            raise AuthenticationError(f"User {user_id} not found")
        if not user.is_active:
            raise AuthenticationError(f"User {user_id} is inactive")

        return Identity(user_id=str(user.id), user_name=user.name, role=user.role)
