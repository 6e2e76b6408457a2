"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures logging, routers, and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from onboarding.adapters.registry.http import HttpIdentityRegistryClient
from onboarding.adapters.repository.postgres import run_migrations
from onboarding.api.v1 import router as v1_router
from onboarding.config.settings import get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Customer Onboarding API v1 - Register customers, verify identities and log in",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool and registry client on startup
    - Runs migrations on startup
    - Closes both on shutdown
    """
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    logger.info("Starting application...")
    logger.info("Connecting to database...")

    # Create connection pool with explicit sizing
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
    )

    logger.info("Running database migrations...")
    run_migrations(pool)

    registry = HttpIdentityRegistryClient(
        base_url=settings.registry_base_url,
        verify_endpoint=settings.registry_verify_endpoint,
        check_endpoint=settings.registry_check_endpoint,
        health_endpoint=settings.registry_health_endpoint,
        timeout_seconds=settings.registry_timeout_seconds,
    )

    # Store shared resources in app state for dependency injection
    app.state.pool = pool
    app.state.registry = registry

    logger.info("Application startup complete (registry at %s)", registry.base_url)

    yield

    # Shutdown
    logger.info("Shutting down application...")
    registry.close()
    pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="onboarding",
    description="Customer Onboarding API - Identity-verified registration, "
    "account code and virtual card issuance, and login with lockout",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy, and reports
    whether the identity registry answers. Raises if the database fails.
    """
    pool = request.app.state.pool
    with pool.connection() as conn:
        conn.execute("SELECT 1")

    registry_status = "up" if request.app.state.registry.is_healthy() else "down"
    return {"status": "healthy", "registry": registry_status}
