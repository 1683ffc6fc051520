"""Authentication middleware."""

from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, WebSocket, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..security import get_user_id_from_token

BEARER_SUBPROTOCOL = "bearer"


class JWTBearer(HTTPBearer):
    """JWT Bearer token authentication."""

    def __init__(self, auto_error: bool = True):
        super(JWTBearer, self).__init__(auto_error=auto_error)

    async def __call__(self, request: Request):
        credentials: Optional[HTTPAuthorizationCredentials] = await super().__call__(request)
        if credentials:
            if credentials.scheme.lower() != "bearer":
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Invalid authentication scheme"
                )

            user_id = await get_user_id_from_token(credentials.credentials)
            if not user_id:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Invalid token or expired token"
                )

            return user_id
        else:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid authorization code"
            )


# Dependency for getting current user ID from JWT
async def get_current_user_id(user_id: UUID = Depends(JWTBearer())) -> UUID:
    """Get current authenticated user ID."""
    return user_id


def extract_websocket_token(websocket: WebSocket) -> Optional[str]:
    """Find the bearer token on a websocket handshake.

    Browsers cannot set headers on websocket requests, so besides the usual
    ``Authorization`` header the token may arrive as the ``token`` query
    parameter or as a ``bearer, <token>`` subprotocol pair.
    """
    token = websocket.query_params.get("token")
    if token:
        return token

    authorization = websocket.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()

    protocols = [
        p.strip()
        for p in websocket.headers.get("sec-websocket-protocol", "").split(",")
        if p.strip()
    ]
    if len(protocols) >= 2 and protocols[0].lower() == BEARER_SUBPROTOCOL:
        return protocols[1]

    return None


def negotiated_subprotocol(websocket: WebSocket) -> Optional[str]:
    """Subprotocol to echo on accept when the token came in that header."""
    offered = websocket.headers.get("sec-websocket-protocol", "")
    if offered.split(",")[0].strip().lower() == BEARER_SUBPROTOCOL:
        return BEARER_SUBPROTOCOL
    return None
