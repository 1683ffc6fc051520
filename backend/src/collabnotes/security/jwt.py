"""JWT token utilities."""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from jose import JWTError, jwt

from ..config import get_settings
from ..core.redis_client import get_redis_client

logger = logging.getLogger(__name__)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token with a JTI so it can be revoked."""
    settings = get_settings()
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.access_token_expire_minutes
        )

    to_encode.update({"exp": expire, "type": "access", "jti": str(uuid.uuid4())})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


async def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and validate access token, checking the Redis revocation list."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None

    if payload.get("type") != "access":
        return None

    jti = payload.get("jti")
    redis_client = get_redis_client()
    # Without Redis the revocation list is unavailable; signature and expiry still apply
    if jti and redis_client.is_connected and await redis_client.is_token_revoked(jti):
        return None

    return payload


async def get_user_id_from_token(token: str) -> Optional[UUID]:
    """Extract user ID from token."""
    payload = await decode_access_token(token)
    if not payload:
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    try:
        return UUID(str(user_id))
    except ValueError:
        return None


async def revoke_token(token: str) -> bool:
    """Add token to the Redis revocation list (logout)."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as e:
        logger.error(f"Revoke token error: {e}")
        return False

    jti = payload.get("jti")
    exp = payload.get("exp")
    if not jti or not exp:
        return False

    remaining_seconds = int(exp - datetime.now(timezone.utc).timestamp())
    if remaining_seconds <= 0:
        return False
    return await get_redis_client().revoke_token(jti, remaining_seconds)
