"""Middleware for authentication and other cross-cutting concerns."""

from .auth import JWTBearer, extract_websocket_token, get_current_user_id, negotiated_subprotocol

__all__ = ["get_current_user_id", "JWTBearer", "extract_websocket_token", "negotiated_subprotocol"]
