"""API routers for CollabNotes."""

from .auth import router as auth_router
from .health import router as health_router
from .realtime import router as realtime_router

__all__ = ["auth_router", "health_router", "realtime_router"]
