"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures routers and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, status
from psycopg_pool import AsyncConnectionPool

from src.adapters.repository.postgres import run_migrations
from src.api.dependencies import get_verification_service
from src.api.models import ErrorResponse, HealthResponse
from src.api.v1 import router as v1_router
from src.config.settings import get_settings
from src.domain.exceptions import StoreUnavailable
from src.domain.verification import VerificationService

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "verification",
        "description": "Email Verification API v1 - Submit an address and verify it via emailed link",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Configures logging from settings
    - Opens the async database connection pool
    - Runs migrations on startup
    - Closes connection pool on shutdown
    """
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logger.info("Starting application...")
    logger.info("Connecting to database...")

    # Create connection pool with explicit sizing
    pool = AsyncConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        open=False,
    )
    await pool.open()

    logger.info("Running database migrations...")
    await run_migrations(pool)

    # Store pool in app state for dependency injection
    app.state.pool = pool

    logger.info(
        "Application startup complete (verification window %ss, email backend %s)",
        settings.verification_window_seconds,
        settings.email_backend,
    )

    yield

    # Shutdown
    logger.info("Shutting down application...")
    await pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="email-verification",
    description="Email Verification API - Issues and validates single-use email verification tokens",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": ErrorResponse, "description": "Storage unavailable"}},
)
async def health_check(
    service: VerificationService = Depends(get_verification_service),
) -> HealthResponse:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy, 503 otherwise.
    """
    try:
        healthy = await service.health_check()
    except StoreUnavailable:
        healthy = False

    if not healthy:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable",
        )

    return HealthResponse(status="healthy")
