"""
FastAPI application.

create_app() assembles the service: the v1 signup router, the domain
error handlers and a lifespan that owns the database pool. The module-level
``app`` is what uvicorn serves (``uvicorn registrar.api.main:app``).
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from registrar.adapters.repository.postgres import run_migrations
from registrar.api.errors import register_exception_handlers
from registrar.api.v1 import router as v1_router
from registrar.config.settings import get_settings

logger = logging.getLogger(__name__)

tags_metadata = [
    {
        "name": "v1",
        "description": "Signup API v1 - Create accounts and confirm pending registrations",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the pool and migrate on startup; close the pool on shutdown."""
    settings = get_settings()

    if settings.test_mode:
        logger.warning("Test mode enabled: captcha checks are skipped")

    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
    )
    run_migrations(pool)
    app.state.pool = pool
    logger.info("Signup service ready (instance %s)", settings.instance_url)

    yield

    pool.close()
    logger.info("Database connection pool closed")


def health_check(request: Request) -> dict[str, str]:
    """
    Report healthy once the database answers.

    Sync so the blocking pool checkout runs in the threadpool; a database
    failure propagates as a 500.
    """
    with request.app.state.pool.connection() as conn:
        conn.execute("SELECT 1")
    return {"status": "healthy"}


def create_app() -> FastAPI:
    app = FastAPI(
        title="registrar",
        description="Account registration service - invitation tickets, registration limits "
        "and email-confirmed signup",
        version="0.1.0",
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )
    register_exception_handlers(app)
    app.include_router(v1_router, prefix="/v1")
    app.add_api_route("/health", health_check, methods=["GET"])
    return app


app = create_app()
