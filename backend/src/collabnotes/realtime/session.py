"""
Per-connection session: one receive loop plus one writer task.

The session owns both tasks. When the receive loop ends (client gone, idle
timeout, server shutdown) the connection is marked closed, disconnect
cleanup runs and the writer is cancelled.
"""

import asyncio
import contextlib
from typing import TYPE_CHECKING, Union

from fastapi import WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError
from fastapi.websockets import WebSocketState

from ..core.logging import get_logger
from ..core.schemas.realtime import (
    CursorSignal,
    JoinRoom,
    LeaveRoom,
    OperationError,
    Ping,
    Pong,
    SubmitEdit,
    parse_client_message,
)
from .connection import Connection

if TYPE_CHECKING:
    from .hub import CollaborationHub

logger = get_logger("realtime.session")

INVALID_MESSAGE = "Invalid message"


class CollaborationSession:
    """Serves one accepted websocket for an authenticated connection."""

    def __init__(self, websocket: WebSocket, connection: Connection, hub: "CollaborationHub"):
        self.websocket = websocket
        self.connection = connection
        self.hub = hub
        self.close_code = status.WS_1000_NORMAL_CLOSURE

    @property
    def log_ctx(self) -> dict:
        return {"connection_id": self.connection.connection_id, "user_id": self.connection.user_id}

    async def run(self) -> None:
        self.hub.register(self.connection)
        writer = asyncio.create_task(
            self._write_loop(), name=f"ws-writer-{self.connection.connection_id}"
        )
        try:
            await self._read_loop()
        finally:
            self.connection.close()
            self.hub.rooms.disconnect(self.connection)
            self.hub.unregister(self.connection)
            writer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await writer
            await self._close_socket()
            logger.info("Session ended", extra=self.log_ctx)

    async def _read_loop(self) -> None:
        while not self.connection.closed:
            try:
                message = await asyncio.wait_for(
                    self.websocket.receive(), timeout=self.hub.idle_timeout
                )
            except asyncio.TimeoutError:
                logger.warning("Idle timeout, closing connection", extra=self.log_ctx)
                self.close_code = status.WS_1001_GOING_AWAY
                return
            except WebSocketDisconnect:
                return

            if message["type"] == "websocket.disconnect":
                logger.info(
                    "Client disconnected", extra={**self.log_ctx, "code": message.get("code")}
                )
                return

            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            await self.dispatch(raw)

    async def dispatch(self, raw: Union[str, bytes, None]) -> None:
        """Route one inbound frame to its handler."""
        try:
            message = parse_client_message(raw or "")
        except ValidationError as e:
            logger.info(
                "Rejected invalid frame", extra={**self.log_ctx, "errors": e.error_count()}
            )
            self.connection.send(OperationError(message=INVALID_MESSAGE))
            return

        conn = self.connection
        if isinstance(message, JoinRoom):
            await self.hub.rooms.join(conn, message.note_id)
        elif isinstance(message, LeaveRoom):
            self.hub.rooms.leave(conn, message.note_id)
        elif isinstance(message, SubmitEdit):
            await self.hub.edits.submit(conn, message.note_id, message.title, message.content)
        elif isinstance(message, CursorSignal):
            self.hub.signals.cursor(conn, message.note_id, message.position)
        elif isinstance(message, Ping):
            conn.send(Pong())

    async def _write_loop(self) -> None:
        while True:
            frame = await self.connection.outbox.get()
            try:
                await self.websocket.send_json(frame)
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.debug(f"Send failed, stopping writer: {e}", extra=self.log_ctx)
                self.connection.close()
                return

    async def _close_socket(self) -> None:
        if (
            self.websocket.application_state == WebSocketState.CONNECTED
            and self.websocket.client_state == WebSocketState.CONNECTED
        ):
            with contextlib.suppress(RuntimeError):
                await self.websocket.close(code=self.close_code)
