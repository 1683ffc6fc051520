"""
Reconnecting collaboration client.

Keeps one websocket open to ``/api/ws``, reconnects with capped exponential
backoff when it drops, and re-joins every note it was in. Presence per note
is taken from the server's ``room-members`` reply on each join and is
cleared whenever the socket goes away.
"""

import asyncio
import contextlib
import json
import random
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import websockets
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidStatus

from ..config import Settings, get_settings
from ..core.exceptions import AccessDeniedError, AuthenticationError, ReconnectExhaustedError
from ..core.logging import get_logger
from ..core.schemas.realtime import CursorSignal, JoinRoom, LeaveRoom, Ping, SubmitEdit, WireModel

logger = get_logger("realtime.client")

EventCallback = Callable[[Dict[str, Any]], None]


def compute_backoff(
    attempt: int,
    initial: float = 1.0,
    maximum: float = 30.0,
    factor: float = 2.0,
    jitter: float = 0.1,
    rng: Callable[[], float] = random.random,
) -> float:
    """Delay in seconds before reconnect attempt number ``attempt`` (1-based).

    Grows geometrically from ``initial`` and never exceeds ``maximum``.
    Jitter shaves up to ``jitter`` of the delay off so that clients dropped
    together do not all come back at the same instant.
    """
    if attempt < 1:
        raise ValueError("attempt must be >= 1")
    delay = min(maximum, initial * factor ** (attempt - 1))
    return delay * (1 - jitter * rng())


def with_token(url: str, token: str) -> str:
    """Return url with the ``token`` query parameter set."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query) if k != "token"]
    query.append(("token", token))
    return urlunsplit(parts._replace(query=urlencode(query)))


class CollabClient:
    """Client side of the collaboration socket."""

    def __init__(
        self,
        url: str,
        token: str,
        on_event: Optional[EventCallback] = None,
        settings: Optional[Settings] = None,
        connect: Callable = websockets.connect,
        jitter: float = 0.1,
        sleep: Callable = asyncio.sleep,
    ):
        settings = settings or get_settings()
        self.url = with_token(url, token)
        self.on_event = on_event
        self.initial_delay = settings.client_reconnect_initial_delay
        self.max_delay = settings.client_reconnect_max_delay
        self.max_retries = settings.client_reconnect_max_retries
        self.heartbeat_interval = settings.client_heartbeat_interval
        self.jitter = jitter
        self._connect = connect
        self._sleep = sleep

        # note id -> {user id -> user name}
        self.presence: Dict[str, Dict[str, str]] = {}
        self.connected = asyncio.Event()
        self._joined: Dict[str, None] = {}
        self._ws = None
        self._closing = False

    @property
    def joined_notes(self) -> List[str]:
        return list(self._joined)

    async def run(self) -> None:
        """Stay connected until close() is called.

        Raises AuthenticationError when the server refuses the handshake and
        ReconnectExhaustedError once ``max_retries`` consecutive attempts fail.
        """
        attempt = 0
        while not self._closing:
            try:
                async with self._connect(self.url) as ws:
                    attempt = 0
                    await self._serve(ws)
            except InvalidStatus as e:
                if e.response.status_code in (401, 403):
                    raise AuthenticationError(f"Handshake refused: HTTP {e.response.status_code}") from e
                logger.warning(f"Handshake failed: {e}")
            except (OSError, InvalidHandshake, ConnectionClosed, asyncio.TimeoutError) as e:
                logger.warning(f"Connection lost: {e}")

            if self._closing:
                break

            attempt += 1
            if self.max_retries is not None and attempt > self.max_retries:
                raise ReconnectExhaustedError(f"Gave up after {self.max_retries} retries")

            delay = compute_backoff(attempt, self.initial_delay, self.max_delay, jitter=self.jitter)
            logger.info(f"Reconnecting in {delay:.2f}s", extra={"attempt": attempt})
            await self._sleep(delay)

    async def close(self) -> None:
        """Stop reconnecting and close the current socket."""
        self._closing = True
        if self._ws is not None:
            await self._ws.close()

    async def join_note(self, note_id: str) -> None:
        """Join now if connected; either way the note is re-joined after every reconnect."""
        self._joined[note_id] = None
        await self._send(JoinRoom(type="join-room", note_id=note_id))

    async def leave_note(self, note_id: str) -> None:
        self._joined.pop(note_id, None)
        self.presence.pop(note_id, None)
        await self._send(LeaveRoom(type="leave-room", note_id=note_id))

    async def submit_edit(
        self, note_id: str, title: Optional[str] = None, content: Optional[str] = None
    ) -> bool:
        """Send an edit. False when offline; edits are not queued across reconnects."""
        return await self._send(SubmitEdit(type="submit-edit", note_id=note_id, title=title, content=content))

    async def send_cursor(self, note_id: str, position: Any) -> bool:
        return await self._send(CursorSignal(type="cursor-signal", note_id=note_id, position=position))

    async def _serve(self, ws) -> None:
        self._ws = ws
        self.connected.set()
        logger.info("Connected", extra={"notes": self.joined_notes})
        self._emit({"type": "connected"})

        heartbeat = asyncio.create_task(self._heartbeat(), name="collab-heartbeat")
        try:
            for note_id in self.joined_notes:
                await self._send(JoinRoom(type="join-room", note_id=note_id))
            async for raw in ws:
                self._handle(raw)
        finally:
            heartbeat.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await heartbeat
            self._ws = None
            self.connected.clear()
            self.presence.clear()
            logger.info("Disconnected")
            self._emit({"type": "disconnected"})

    async def _heartbeat(self) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            await self._send(Ping(type="ping"))

    async def _send(self, message: WireModel) -> bool:
        ws = self._ws
        if ws is None:
            return False
        try:
            await ws.send(json.dumps(message.to_wire()))
        except ConnectionClosed:
            return False
        return True

    def _handle(self, raw) -> None:
        try:
            frame = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed frame from server")
            return

        kind = frame.get("type")
        note_id = frame.get("noteId")
        if kind == "room-members":
            self.presence[note_id] = {m["userId"]: m["userName"] for m in frame.get("members", [])}
        elif kind == "member-joined" and note_id in self.presence:
            self.presence[note_id][frame["userId"]] = frame["userName"]
        elif kind == "member-left" and note_id in self.presence:
            self.presence[note_id].pop(frame["userId"], None)
        elif kind == "operation-error" and frame.get("message") == AccessDeniedError.client_message:
            # no point re-joining a note we are not allowed into
            self._joined.pop(note_id, None)
            self.presence.pop(note_id, None)

        self._emit(frame)

    def _emit(self, frame: Dict[str, Any]) -> None:
        if self.on_event is not None:
            self.on_event(frame)
