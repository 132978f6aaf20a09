"""
Application wiring for the sticky session persistence service.

The lifespan connects to Redis on startup and closes the connection on
shutdown. The persistence service is exposed on
``app.state.session_persistence`` for the browser session lifecycle to
use. A Redis outage never prevents the application from starting.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from config.settings import Settings, get_settings
from health.service import HealthCheckService
from session.connector import RedisConnector
from session.persistence import SessionPersistenceService
from telemetry.service import initialize_telemetry

logger = logging.getLogger(__name__)

SERVICE_NAME = "Sticky Session Persistence"
SERVICE_VERSION = "1.0.0"


def create_app(
    settings: Optional[Settings] = None,
    connector: Optional[RedisConnector] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment when omitted.
        connector: Redis connector to use; a new one is created when omitted.
    """
    settings = settings or get_settings()
    connector = connector or RedisConnector()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown events."""
        logger.info("Starting sticky session persistence service...")
        await connector.initialize(settings)
        app.state.session_persistence = SessionPersistenceService(connector)
        app.state.health_check_service = HealthCheckService(
            connector=connector,
            persistence_enabled=settings.enable_session_persistence,
            check_timeout=5.0
        )

        yield  # Application runs here

        logger.info("Shutting down sticky session persistence service...")
        await connector.shutdown()

    app = FastAPI(title=SERVICE_NAME, version=SERVICE_VERSION, lifespan=lifespan)

    # =========================================================================
    # Health Check Endpoints
    # =========================================================================

    @app.get("/health")
    async def health_basic():
        """Basic health check; 200 OK while the service accepts requests."""
        result = await app.state.health_check_service.check_health()
        return {
            "status": result["status"],
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "timestamp": result["timestamp"]
        }

    @app.get("/health/ready")
    async def health_ready():
        """
        Readiness check including the session store.

        Always 200: the service stays usable without persistence, so an
        unavailable store is reported as "degraded" with the failure reason.
        """
        health_status = await app.state.health_check_service.check_readiness()
        response_data = health_status.to_dict()
        response_data["service"] = SERVICE_NAME
        response_data["version"] = SERVICE_VERSION
        response_data["persistence_enabled"] = app.state.session_persistence.is_enabled()
        return response_data

    @app.get("/health/live")
    async def health_live():
        """Liveness check; 200 OK if the process is running."""
        return await app.state.health_check_service.check_liveness()

    return app


def build_default_app() -> FastAPI:
    """Load settings, configure JSON logging and build the application."""
    settings = get_settings()
    initialize_telemetry(settings)
    return create_app(settings)


app = build_default_app()

if __name__ == "__main__":
    import uvicorn
    import os
    port = int(os.environ.get("PORT", 8080))
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")
