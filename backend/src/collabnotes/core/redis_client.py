"""Redis client holding the revoked access token list."""

import logging
from typing import Optional

import redis.asyncio as redis

from ..config import get_settings

logger = logging.getLogger(__name__)

REVOKED_TOKEN_PREFIX = "revoked:"


class RedisClient:
    """Thin async Redis wrapper; every call degrades to a no-op while disconnected."""

    def __init__(self):
        self.settings = get_settings()
        self.redis: Optional[redis.Redis] = None

    @property
    def is_connected(self) -> bool:
        return self.redis is not None

    async def connect(self) -> None:
        """Connect to Redis."""
        client = redis.from_url(
            self.settings.redis_url,
            max_connections=self.settings.redis_max_connections,
            decode_responses=True,
        )
        try:
            await client.ping()
        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            await client.aclose()
            raise
        self.redis = client
        logger.info("Connected to Redis successfully")

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            logger.info("Disconnected from Redis")

    async def set(self, key: str, value: str, expire: Optional[int] = None) -> bool:
        """Set value with optional expiration."""
        if not self.redis:
            return False
        try:
            if expire:
                return bool(await self.redis.setex(key, expire, value))
            return bool(await self.redis.set(key, value))
        except Exception as e:
            logger.error(f"Redis SET error for key {key}: {e}")
            return False

    async def exists(self, key: str) -> bool:
        """Check if key exists."""
        if not self.redis:
            return False
        try:
            return await self.redis.exists(key) > 0
        except Exception as e:
            logger.error(f"Redis EXISTS error for key {key}: {e}")
            return False

    async def revoke_token(self, token_jti: str, expire: int) -> bool:
        """Revoke an access token until it would have expired anyway."""
        return await self.set(f"{REVOKED_TOKEN_PREFIX}{token_jti}", "1", expire)

    async def is_token_revoked(self, token_jti: str) -> bool:
        """Check if token has been revoked."""
        return await self.exists(f"{REVOKED_TOKEN_PREFIX}{token_jti}")


# Singleton instance
_redis_client: Optional[RedisClient] = None


def get_redis_client() -> RedisClient:
    """Get Redis client singleton."""
    global _redis_client
    if _redis_client is None:
        _redis_client = RedisClient()
    return _redis_client
