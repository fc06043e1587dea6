"""
HelloStore FastAPI Application

Main entry point. Builds the app, wires services at startup and applies
the access gate to every request.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

# Common library imports
from common.database import MongoDB

# App-specific imports
from storefront.config import Settings, get_settings
from storefront.dependencies import (
    ServiceContainer,
    build_access_gate,
    build_session_cookie,
    init_services,
)
from storefront.middleware import AccessGateMiddleware, register_exception_handlers
from storefront.routers import admin_router, auth_router, dashboard_router, pages_router
from storefront.services.auth.auth_flow import utcnow

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "storefront" / "static"


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[ServiceContainer] = None,
    clock: Callable[[], datetime] = utcnow,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Application settings; loaded from the environment if None
        services: Prebuilt services; when None they are built at startup
            over a MongoDB connection
        clock: Source of the current UTC time for the access gate and
            the account flows

    Returns:
        FastAPI application
    """
    settings = settings or (services.settings if services else get_settings())
    database = MongoDB()

    # =========================================================================
    # Application Lifespan
    # =========================================================================
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting HelloStore...")

        try:
            settings.validate_required()
        except ValueError as e:
            if settings.is_production():
                raise
            logger.warning(str(e))

        if app.state.services is None:
            await database.connect(
                uri=settings.MONGODB_URI,
                database_name=settings.MONGODB_DATABASE,
            )
            app.state.services = init_services(settings, database.db, clock=clock)
            await app.state.services.user_store.ensure_indexes()
            await app.state.services.session_store.ensure_indexes(
                settings.session_idle_timeout_seconds
            )

        logger.info("HelloStore started successfully!")

        yield

        logger.info("Shutting down HelloStore...")
        if database.is_connected:
            await database.disconnect()
        logger.info("HelloStore shut down complete.")

    app = FastAPI(
        title="HelloStore",
        description="Storefront accounts, sessions and admin user management",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development() else None,
        redoc_url=None,
    )

    app.state.services = services
    app.state.database = database
    app.state.session_cookie = build_session_cookie(settings)

    # =========================================================================
    # Middleware and error pages
    # =========================================================================
    app.add_middleware(
        AccessGateMiddleware,
        gate=build_access_gate(settings),
        cookie=app.state.session_cookie,
        clock=clock,
        session_store=services.session_store if services else None,
    )
    register_exception_handlers(app, is_production=settings.is_production())

    # =========================================================================
    # Routes
    # =========================================================================
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")
    app.include_router(pages_router)
    app.include_router(auth_router)
    app.include_router(dashboard_router)
    app.include_router(admin_router)

    return app


# =============================================================================
# Run with Uvicorn
# =============================================================================
if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    configure_logging(settings)

    uvicorn.run(
        create_app(settings),
        host=settings.HOST,
        port=settings.PORT,
    )
