# ============================================================================
# HEALTH MONITOR - MAIN APPLICATION
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Core - FastAPI application entry point
# PURPOSE: Wire probes, health routes and the dashboard into one app
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Monitor Main Application

FastAPI application that:
1. Loads settings (HEALTH_CONFIG_PATH YAML + environment overrides)
2. Builds the probe registry, executor and health routes
3. Runs the dashboard poller in the background

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from __version__ import __version__, BUILD_DATE, EPOCH
from api.ui_routes import create_ui_router
from core.config import HealthSettings
from core.logging import configure_logging
from health.loader import HealthComponents, build_components

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[HealthSettings] = None,
    components: Optional[HealthComponents] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use (HealthSettings.load() if None)
        components: Prebuilt components (tests); built from settings if None

    Raises:
        HealthCheckError: On invalid configuration (fails startup)
    """
    if components is None:
        settings = settings or HealthSettings.load()
        configure_logging(
            level=settings.log_level,
            json_output=settings.log_format == "json",
        )
        components = build_components(settings)
    settings = components.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start the dashboard poller on startup, stop it on shutdown."""
        logger.info(
            f"Starting {settings.service_name} v{__version__} "
            f"(Epoch {EPOCH}, Build {BUILD_DATE}) with "
            f"{len(components.registry)} health checks"
        )

        if components.dashboard is not None:
            await components.dashboard.start()

        yield

        logger.info(f"Shutting down {settings.service_name}...")
        if components.dashboard is not None:
            await components.dashboard.stop()
        components.executor.close()
        logger.info(f"{settings.service_name} stopped")

    app = FastAPI(
        title=settings.service_name,
        description="Health check aggregation and reporting",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.health = components

    # Health routes (no prefix - /healthz, /livez, /readyz)
    app.include_router(components.dispatcher.build_router())

    if components.dashboard is not None:
        app.include_router(
            create_ui_router(
                components.dashboard,
                title=f"{settings.service_name} health",
                ui_path=settings.dashboard.ui_path,
                api_path=settings.dashboard.api_path,
            )
        )

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": settings.service_name,
            "version": __version__,
            "build_date": BUILD_DATE,
            "checks": components.registry.names(),
            "routes": [r.path for r in components.dispatcher.routes],
            "dashboard": settings.dashboard.ui_path if components.dashboard else None,
        }

    return app


app = create_app()


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=os.environ.get("RELOAD", "false").lower() == "true",
    )
