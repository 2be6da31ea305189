"""
FastAPI application entry point for the Agency Metrics API.

This module builds the application: it configures logging and CORS, creates
the engine's process-wide collaborators and registers the API routers.

Process-wide state lives on ``app.state`` and is injected into endpoints via
agency_metrics.core.dependencies:
- settings: the Settings the app was built with
- metrics_source: seeded (default) or Postgres MetricsSource
- alert_store: bounded newest-first alert ledger
- rate_limiter: fixed-window limiter for the scan and export triggers
- alert_digest: Slack notifier for newly raised alerts
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agency_metrics.api import api_router
from agency_metrics.core.config import Settings, get_settings
from agency_metrics.core.database import init_db, close_db
from agency_metrics.jobs.alert_digest import AlertDigest
from agency_metrics.models import MetricsSourceKind
from agency_metrics.services.alert_store import AlertStore
from agency_metrics.services.metrics_source import create_metrics_source
from agency_metrics.services.rate_limiter import RateLimiter

# Configure logging
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_TITLE = "Agency Metrics API"
API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for application startup and shutdown.

    On startup the database pool is opened when the Postgres metrics source
    is configured; on shutdown it is closed again.
    """
    settings: Settings = app.state.settings
    uses_db = settings.metrics_source is MetricsSourceKind.POSTGRES

    logger.info(f"{API_TITLE} starting (metrics source: {settings.metrics_source.value})")
    if uses_db:
        try:
            await init_db()
            logger.info("Database connection pool initialized")
        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            # Continue startup even if DB fails - health and ranges need no DB

    yield

    logger.info(f"{API_TITLE} shutting down")
    if uses_db:
        try:
            await close_db()
            logger.info("Database connection pool closed")
        except Exception as e:
            logger.error(f"Error closing database pool: {e}")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build a fully wired application.

    Args:
        settings: Configuration to build from; the cached settings by default.
            Tests pass their own to get isolated stores and limits.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=API_TITLE,
        version=API_VERSION,
        description=(
            "Metrics aggregation, period comparison and anomaly alerting engine "
            "for the agency dashboard. Provides KPI series, breakdowns, alerts "
            "and export rows."
        ),
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.metrics_source = create_metrics_source(settings)
    app.state.alert_store = AlertStore(capacity=settings.alert_capacity)
    app.state.rate_limiter = RateLimiter(
        default_limit=settings.rate_limit_default_max,
        default_window_ms=settings.rate_limit_window_ms,
    )
    app.state.alert_digest = AlertDigest(settings) if settings.slack_webhook_url else None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Retry-After"],
    )

    app.include_router(api_router)

    @app.get("/health")
    async def health_check():
        """
        Health check endpoint for monitoring and load balancer probes.
        """
        return {"status": "healthy"}

    @app.get("/")
    async def root():
        return {
            "name": API_TITLE,
            "version": API_VERSION,
            "docs": "/docs",
            "openapi": "/openapi.json",
        }

    return app


app = create_app()


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "agency_metrics.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
