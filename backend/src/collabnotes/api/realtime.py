"""Realtime collaboration websocket endpoint."""

from fastapi import APIRouter, WebSocket, status

from ..core.exceptions import AuthenticationError
from ..core.logging import get_logger
from ..middleware.auth import extract_websocket_token, negotiated_subprotocol
from ..realtime.hub import CollaborationHub
from ..realtime.session import CollaborationSession

router = APIRouter(tags=["realtime"])
logger = get_logger("api.realtime")


@router.websocket("/ws")
async def collaboration_socket(websocket: WebSocket):
    """Authenticate once at handshake, then serve the session until it ends."""
    hub: CollaborationHub = websocket.app.state.hub

    try:
        connection = await hub.gate.authenticate(extract_websocket_token(websocket))
    except AuthenticationError as e:
        logger.warning(
            f"Rejected websocket handshake: {e.detail}",
            extra={"client": websocket.client.host if websocket.client else None},
        )
        # closing before accept refuses the handshake; no session is ever created
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=e.client_message)
        return

    await websocket.accept(subprotocol=negotiated_subprotocol(websocket))
    await CollaborationSession(websocket, connection, hub).run()
