"""Shared pytest fixtures: SQLite in-memory database and in-memory realtime delegates."""

import logging
import os
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Set

# Tell app lifespan to skip real DB init
os.environ.setdefault("COLLABNOTES_SKIP_LIFESPAN_DB", "1")

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.collabnotes.config import Settings
from src.collabnotes.core.exceptions import AuthenticationError, NoteNotFoundError
from src.collabnotes.core.models.base import BaseModel
from src.collabnotes.core.schemas.auth import Identity
from src.collabnotes.core.schemas.notes import NoteSnapshot
from src.collabnotes.core.services.interfaces import (
    ICredentialVerifier,
    INoteAccessPolicy,
    INoteStore,
)
from src.collabnotes.realtime.connection import Connection

# Silence extremely verbose DEBUG logs from aiosqlite to keep test output readable
logging.getLogger("aiosqlite").setLevel(logging.WARNING)


@pytest.fixture
def test_settings():
    """Settings for tests using SQLite in-memory DB."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        secret_key="test-secret-key",
        debug=True,
        redis_url=os.getenv("TEST_REDIS_URL", "redis://localhost:6379/15"),
        realtime_idle_timeout_seconds=30.0,
        realtime_outbox_size=64,
    )


@pytest.fixture
async def test_engine(test_settings):
    """Fresh SQLite in-memory engine with the schema created."""
    engine = create_async_engine(
        test_settings.database_url,
        echo=False,
        poolclass=StaticPool,  # keep the same memory DB across connections
        connect_args={"check_same_thread": False},
    )

    # Ensure SQLite enforces foreign key constraints (required for CASCADE)
    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ANN001
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
        finally:
            cursor.close()

    async with engine.begin() as conn:
        from src.collabnotes.core.models import collaborator as _m_collaborator  # noqa: F401
        from src.collabnotes.core.models import note as _m_note  # noqa: F401
        from src.collabnotes.core.models import user as _m_user  # noqa: F401

        await conn.run_sync(BaseModel.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def test_session(session_factory):
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()


# ---------------------------------------------------------------------------
# in-memory delegates
# ---------------------------------------------------------------------------


class FakeVerifier(ICredentialVerifier):
    """token -> Identity lookup."""

    def __init__(self, identities: Optional[Dict[str, Identity]] = None):
        self.identities = identities or {}
        self.calls = []
        self.error: Optional[Exception] = None

    async def verify_credential(self, token: str) -> Identity:
        self.calls.append(token)
        if self.error is not None:
            raise self.error
        identity = self.identities.get(token)
        if identity is None:
            raise AuthenticationError("Unknown token")
        return identity


class InMemoryNotes(INoteAccessPolicy, INoteStore):
    """Notes and access grants held in dicts."""

    def __init__(self):
        self.notes: Dict[str, Dict[str, Any]] = {}
        self.grants: Dict[str, Set[str]] = {}
        self.writes = []
        self.access_error: Optional[Exception] = None
        self.update_error: Optional[Exception] = None

    def add_note(self, owner_id: str, title: str = "Untitled", content: str = "", note_id: Optional[str] = None) -> str:
        note_id = note_id or str(uuid.uuid4())
        self.notes[note_id] = {"title": title, "content": content, "owner_id": owner_id}
        self.grants[note_id] = {owner_id}
        return note_id

    def grant(self, note_id: str, user_id: str) -> None:
        self.grants.setdefault(note_id, set()).add(user_id)

    async def user_has_note_access(self, user_id: str, role: str, note_id: str) -> bool:
        if self.access_error is not None:
            raise self.access_error
        if note_id not in self.notes:
            return False
        return role == "admin" or user_id in self.grants.get(note_id, set())

    async def get_note(self, note_id: str) -> Optional[NoteSnapshot]:
        note = self.notes.get(note_id)
        if note is None:
            return None
        return NoteSnapshot(id=note_id, **note)

    async def update_note(self, note_id: str, fields: Dict[str, Any]) -> NoteSnapshot:
        if self.update_error is not None:
            raise self.update_error
        if note_id not in self.notes:
            raise NoteNotFoundError(note_id)
        self.writes.append((note_id, dict(fields)))
        self.notes[note_id].update(fields)
        return NoteSnapshot(id=note_id, updated_at=datetime.now(timezone.utc), **self.notes[note_id])


@pytest.fixture
def notes():
    return InMemoryNotes()


@pytest.fixture
def identities():
    return {
        "token-alice": Identity(user_id="u-alice", user_name="Alice", role="editor"),
        "token-bob": Identity(user_id="u-bob", user_name="Bob", role="editor"),
        "token-carol": Identity(user_id="u-carol", user_name="Carol", role="viewer"),
        "token-root": Identity(user_id="u-root", user_name="Root", role="admin"),
    }


@pytest.fixture
def verifier(identities):
    return FakeVerifier(identities)


@pytest.fixture
def make_connection(identities):
    """Build a Connection for one of the known tokens."""

    def _make(token: str = "token-alice", outbox_size: int = 64) -> Connection:
        return Connection(identities[token], outbox_size=outbox_size)

    return _make


@pytest.fixture
def drain():
    """Pop every queued frame off a connection's outbox."""

    def _drain(connection: Connection) -> list:
        frames = []
        while not connection.outbox.empty():
            frames.append(connection.outbox.get_nowait())
        return frames

    return _drain
