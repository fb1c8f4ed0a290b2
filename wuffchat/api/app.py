"""FastAPI application factory and configuration.

Host application with lifespan logging and a health endpoint. The chat UI is
mounted onto it by wuffchat.main.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI

from wuffchat import __version__

logger = logging.getLogger(__name__)

BUILD_TIMESTAMP = datetime.now(timezone.utc).isoformat()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Log application startup and shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application while it runs.
    """
    logger.info(f"Starting Wuffchat UI (build {BUILD_TIMESTAMP})")
    yield
    logger.info("Shutting down Wuffchat UI...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    application = FastAPI(
        title="Wuffchat UI",
        description="Chat widget for the Wuffchat conversational backend.",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {
            "status": "healthy",
            "service": "wuffchat-ui",
            "version": __version__,
            "build": BUILD_TIMESTAMP,
        }

    return application


app = create_app()
