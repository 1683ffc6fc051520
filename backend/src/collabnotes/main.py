# Main application entry point
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api import auth_router, health_router, realtime_router
from .config import Settings, get_settings
from .core.logging import LoggingMiddleware, get_logger, setup_logging
from .core.redis_client import get_redis_client
from .core.services import CredentialService, NoteGateway
from .core.services.interfaces import ICredentialVerifier, INoteAccessPolicy, INoteStore
from .database import AsyncSessionLocal, create_tables
from .realtime.hub import CollaborationHub

# Setup logging first
setup_logging()
logger = get_logger("main")


def create_app(
    settings: Optional[Settings] = None,
    credential_verifier: Optional[ICredentialVerifier] = None,
    access_policy: Optional[INoteAccessPolicy] = None,
    note_store: Optional[INoteStore] = None,
) -> FastAPI:
    """Build the application.

    Delegates default to the database/JWT backed services; tests pass
    in-memory ones instead.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        logger.info(
            "Starting CollabNotes application",
            extra={"version": __version__, "environment": settings.environment, "debug": settings.debug},
        )

        # Redis only holds the revoked token list; run without it if unreachable
        redis_client = get_redis_client()
        try:
            await redis_client.connect()
            logger.info("Redis connection established")
        except Exception as e:
            logger.warning(f"Redis connection failed: {e}. Continuing without Redis...")

        # Allow tests to skip touching the real DB (e.g., when using SQLite in-memory)
        if os.getenv("COLLABNOTES_SKIP_LIFESPAN_DB") == "1":
            logger.info("Skipping DB table creation due to COLLABNOTES_SKIP_LIFESPAN_DB=1")
        else:
            try:
                await create_tables()
                logger.info("Database tables created/verified")
            except Exception as e:
                logger.error("Failed to create database tables", exc_info=e)
                raise

        gateway = None
        if access_policy is None or note_store is None:
            gateway = NoteGateway(AsyncSessionLocal)
        app.state.hub = CollaborationHub(
            verifier=credential_verifier or CredentialService(AsyncSessionLocal),
            access_policy=access_policy or gateway,
            note_store=note_store or gateway,
            settings=settings,
        )
        logger.info(
            "Realtime hub ready",
            extra={
                "idle_timeout": settings.realtime_idle_timeout_seconds,
                "outbox_size": settings.realtime_outbox_size,
            },
        )

        yield

        # Shutdown
        logger.info("Shutting down CollabNotes application")
        app.state.hub.shutdown()
        try:
            await redis_client.disconnect()
            logger.info("Redis connection closed")
        except Exception as e:
            logger.warning(f"Redis disconnect failed: {e}")

    app = FastAPI(
        title=settings.app_name,
        description="Realtime collaboration backend for shared notes",
        version=__version__,
        lifespan=lifespan,
    )

    # Add logging middleware
    app.add_middleware(LoggingMiddleware)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(auth_router, prefix="/api")
    app.include_router(health_router, prefix="/api")
    app.include_router(realtime_router, prefix="/api")

    # Root endpoint
    @app.get("/")
    async def root():
        return {"message": "CollabNotes API", "version": __version__, "websocket": "/api/ws"}

    # Basic unprefixed health endpoint
    @app.get("/health")
    async def basic_health():
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run("collabnotes.main:app", host=_settings.host, port=_settings.port, reload=_settings.reload)
