"""
API package initialization.

This package contains FastAPI router modules for the Agency Metrics engine:
- kpis: KPI series with optional previous period, and period deltas
- breakdown: per-segment breakdowns by gender, age or country
- alerts: alert listing and the anomaly scan trigger
- exports: tabular rows for document exporters
- ranges: preset and explicit range resolution
"""

from fastapi import APIRouter

from agency_metrics.api.kpis import router as kpis_router
from agency_metrics.api.breakdown import router as breakdown_router
from agency_metrics.api.alerts import router as alerts_router
from agency_metrics.api.exports import router as exports_router
from agency_metrics.api.ranges import router as ranges_router

# Create main API router
api_router = APIRouter()

api_router.include_router(kpis_router, prefix="/kpis", tags=["kpis"])
api_router.include_router(breakdown_router, prefix="/breakdown", tags=["breakdown"])
api_router.include_router(alerts_router, prefix="/alerts", tags=["alerts"])
api_router.include_router(exports_router, prefix="/export", tags=["export"])
api_router.include_router(ranges_router, prefix="/ranges", tags=["ranges"])

__all__ = [
    "api_router",
    "kpis_router",
    "breakdown_router",
    "alerts_router",
    "exports_router",
    "ranges_router",
]
