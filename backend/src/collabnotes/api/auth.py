"""Authentication API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..core.logging import get_logger
from ..middleware.auth import get_current_user_id
from ..security import revoke_token

router = APIRouter(prefix="/auth", tags=["authentication"])
logger = get_logger("api.auth")

bearer_scheme = HTTPBearer()


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(
    current_user_id: UUID = Depends(get_current_user_id),
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
):
    """Revoke the current access token; later websocket handshakes with it fail."""
    if await revoke_token(credentials.credentials):
        logger.info("Access token revoked", extra={"user_id": str(current_user_id)})
        return {"message": "Successfully logged out"}
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Token revocation unavailable",
    )
