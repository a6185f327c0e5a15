"""FastAPI application entry point.

Run with:  uvicorn wishlist.api.main:app

Application lifecycle:
  1. Startup: Configure logging, create the shared TMDb client
  2. Runtime: Handle HTTP requests through the lifecycle and catalog services
  3. Shutdown: Close the TMDb client and the database connection pool
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI

from wishlist.api.routers import movies_router
from wishlist.config import constants
from wishlist.infra.db import dispose_engine
from wishlist.infra.tmdb import TMDbClient


def _configure_logging() -> None:
    """Configure structlog for structured JSON output.

    Sets up stdlib logging at the configured level so that third-party
    libraries (FastAPI, uvicorn, httpx) emit through the same pipeline as
    application code. All output is serialised as JSON to stdout.
    """
    log_level = getattr(logging, constants.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        level=log_level,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle: startup and shutdown.

    Startup:
      - Configure structured logging
      - Create the TMDb client and store it in app.state for dependency injection

    Shutdown:
      - Close the TMDb client's connection pool
      - Dispose of the database engine
    """
    _configure_logging()

    log = structlog.get_logger().bind(
        service=constants.SERVICE_NAME,
        component="api",
    )

    log.info("api.startup.creating_tmdb_client", tmdb_base_url=constants.TMDB_BASE_URL)
    tmdb_client = TMDbClient.from_settings()
    app.state.tmdb_client = tmdb_client
    log.info("api.startup.complete")

    yield

    log.info("api.shutdown.closing_clients")
    app.state.tmdb_client = None
    await tmdb_client.aclose()
    await dispose_engine()
    log.info("api.shutdown.complete")


app = FastAPI(
    title="Movie Wishlist",
    description="Personal movie wishlist with a review lifecycle and audit history.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(movies_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "service": constants.SERVICE_NAME}
