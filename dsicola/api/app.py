# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the DSICOLA API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from dsicola import __version__
from dsicola.api.dependencies import close_db, init_db
from dsicola.api.middleware.auth import AuthMiddleware
from dsicola.api.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from dsicola.api.middleware.tenant import TenantMiddleware
from dsicola.api.routes import health
from dsicola.api.v1 import router as v1_router
from dsicola.core.config import get_settings
from dsicola.infrastructure.database.connection import DatabaseError
from dsicola.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Configures logging and opens the database engine on startup, and
    disposes of it on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info(
        "Starting DSICOLA API",
        extra={"environment": settings.environment, "debug": settings.debug},
    )

    try:
        await init_db()
        logger.info("Database connections initialized")
    except DatabaseError as e:
        logger.warning("Failed to initialize database connections: %s", str(e))

    yield

    try:
        await close_db()
        logger.info("Database connections closed")
    except SQLAlchemyError as e:
        logger.warning("Error closing database connections: %s", str(e))

    logger.info("Shutting down DSICOLA API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    This factory function creates a new FastAPI instance with all
    middleware, routes, and configurations applied.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="DSICOLA API",
        description="Multi-tenant school management backend",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        # Disable automatic redirects from /path to /path/
        # This prevents 307 redirects that lose Authorization headers
        redirect_slashes=False,
    )

    # =========================================================================
    # State
    # =========================================================================
    app.state.limiter = limiter

    # =========================================================================
    # Exception handlers
    # =========================================================================
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================

    # CORS middleware (should be last to execute first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # Auth middleware - validates JWT tokens, needs the resolved tenant
    app.add_middleware(AuthMiddleware)

    # Tenant middleware - resolves tenant from header or subdomain
    app.add_middleware(TenantMiddleware, settings=settings.tenancy)

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
