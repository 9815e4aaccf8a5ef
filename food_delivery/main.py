"""
FastAPI Application Entry Point

Food Delivery Platform - REST backend for customers, restaurant owners
and admins.

Endpoints (under API_PREFIX, default /api):
    - /auth: Register, login, profile, password change
    - /users: Public browsing, cart, order placement and history
    - /restaurants: Restaurant owner self-service
    - /orders: Order access, cancel, tracking, admin order stats
    - /admin: Users, restaurant approval, analytics, system health
    - GET /health: System health check

Version: 1.0.0
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from food_delivery.core.config import Settings, get_settings, setup_logging
from food_delivery.core.errors import register_exception_handlers
from food_delivery.database import Database
from food_delivery.routers import admin, auth, orders, restaurants, users
from food_delivery.schemas import HealthResponse
from food_delivery.services import seed_default_admin

logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    settings: Settings = app.state.settings

    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    database = Database(settings.database_url, echo=settings.database_echo)
    await database.connect()
    app.state.database = database
    logger.info("✅ Database initialized")

    if await seed_default_admin(database, settings):
        logger.info(f"✅ Default admin created: {settings.default_admin_email}")

    missing = settings.validate_production_config()
    if missing:
        logger.warning(f"⚠️ Default values still in use for: {missing}")

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await database.disconnect()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around the given (or cached) settings."""
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description=(
            "Three-role food ordering API: restaurants and menus, cart, "
            "order placement and tracking, admin analytics."
        ),
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings

    # CORS middleware
    origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, debug=settings.debug)

    for module in (auth, users, restaurants, orders, admin):
        app.include_router(module.router, prefix=settings.api_prefix)

    # =========================================================================
    # ROOT & HEALTH ENDPOINTS
    # =========================================================================

    @app.get("/", tags=["Root"])
    async def root() -> dict[str, str]:
        """API root with navigation links."""
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.app_version,
            "environment": settings.env_mode.value,
            "documentation": "/docs",
            "health": "/health",
        }

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["Health"],
        summary="System Health Check",
    )
    async def health_check(request: Request) -> HealthResponse:
        """Verify the database is reachable."""
        healthy = await request.app.state.database.ping()
        return HealthResponse(
            status="operational" if healthy else "degraded",
            database="healthy" if healthy else "unhealthy",
            timestamp=datetime.now(),
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "food_delivery.main:app",
        host=_settings.api_host,
        port=_settings.api_port,
        reload=_settings.is_development,
    )
