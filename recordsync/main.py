"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from recordsync.config import get_settings
from recordsync.infrastructure.dependencies import SyncContainer, build_container
from recordsync.infrastructure.logging.log_config import setup_logging
from recordsync.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan — initial probe, then background loops."""
    setup_logging()
    container: SyncContainer = app.state.sync

    # 1. Establish the connectivity state before serving anything
    try:
        await container.monitor.poll_once()
    except Exception:
        logger.exception("Initial connectivity probe failed — continuing")

    # 2. Start connectivity polling and cache sweeping
    await container.start()
    logger.info(
        "Sync layer started — connectivity=%s",
        container.monitor.get_state().value,
    )

    yield

    # Shutdown
    await container.stop()


def create_app(container: SyncContainer | None = None) -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.sync = container or build_container(settings)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount API routes
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "recordsync.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
