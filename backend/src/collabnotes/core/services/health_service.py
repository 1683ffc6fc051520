"""Health service implementation."""

import asyncio
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ... import __version__
from ..redis_client import get_redis_client
from ..schemas.common import HealthCheckResponse
from .interfaces import IHealthService

if TYPE_CHECKING:
    from ...realtime.hub import CollaborationHub


class HealthService(IHealthService):
    """Health check service implementation."""

    def __init__(self, session: AsyncSession, hub: Optional["CollaborationHub"] = None):
        self.session = session
        self.hub = hub

    async def get_health_status(self) -> HealthCheckResponse:
        """Get app health status."""
        db_health = await self.check_database_health()
        redis_health = await self.check_redis_health()
        realtime_health = self.check_realtime_health()

        # redis only backs token revocation, so losing it degrades rather than fails
        overall_status = "healthy"
        if not db_health["connected"] or not realtime_health["running"]:
            overall_status = "unhealthy"
        elif not redis_health["connected"]:
            overall_status = "degraded"

        return HealthCheckResponse(
            status=overall_status,
            timestamp=datetime.now(timezone.utc),
            version=__version__,
            checks={"database": db_health, "redis": redis_health, "realtime": realtime_health},
        )

    async def check_database_health(self) -> Dict[str, Any]:
        """Check DB connection."""
        try:
            start_time = asyncio.get_running_loop().time()
            result = await self.session.execute(text("SELECT 1"))
            result.scalar()
            response_time = (asyncio.get_running_loop().time() - start_time) * 1000

            return {
                "connected": True,
                "status": "healthy",
                "response_time_ms": round(response_time, 2),
            }
        except Exception as e:
            return {
                "connected": False,
                "status": "unhealthy",
                "error": str(e),
                "response_time_ms": 0.0,
            }

    async def check_redis_health(self) -> Dict[str, Any]:
        """Check the shared Redis client."""
        redis_client = get_redis_client()
        if not redis_client.is_connected:
            return {"connected": False, "status": "unavailable", "response_time_ms": None}

        try:
            start_time = asyncio.get_running_loop().time()
            await redis_client.redis.ping()
            response_time = (asyncio.get_running_loop().time() - start_time) * 1000

            return {
                "connected": True,
                "status": "healthy",
                "response_time_ms": round(response_time, 2),
            }
        except Exception as e:
            return {
                "connected": False,
                "status": "unhealthy",
                "error": str(e),
                "response_time_ms": None,
            }

    def check_realtime_health(self) -> Dict[str, Any]:
        """Report presence registry size."""
        if self.hub is None:
            return {"running": False, "status": "unavailable"}
        return {"running": True, "status": "healthy", **self.hub.stats()}
