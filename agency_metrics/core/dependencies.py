"""
FastAPI dependency injection module for the Agency Metrics backend.

The engine's stateful collaborators (AlertStore, RateLimiter) and its
MetricsSource are built once by the app factory (main.create_app) and kept on
``app.state``. The providers below read them back from the request, so every
endpoint receives the same instances and tests can swap them either by
building their own app or through ``app.dependency_overrides``.

Key Dependencies Provided:
- get_settings_dependency / SettingsDep: the Settings the app was built with
- get_alert_store / AlertStoreDep: the process-wide alert ledger
- get_rate_limiter / RateLimiterDep: the process-wide fixed-window limiter
- get_kpi_aggregator, get_breakdown_engine, get_anomaly_scanner: engine
  services bound to the configured MetricsSource
- enforce_rate_limit(action, limit_setting): dependency factory that rejects
  over-limit callers with HTTP 429 and a Retry-After header

Usage Examples:
    @router.post("/scan", dependencies=[Depends(enforce_rate_limit("alerts-scan", "scan_rate_limit_max"))])
    async def scan_alerts(scanner: AnomalyScannerDep) -> ScanResponse:
        ...
"""

import math
from typing import Annotated, Callable, Optional, Sequence

from fastapi import Depends, HTTPException, Request

from agency_metrics.core.config import Settings, get_settings
from agency_metrics.models import RateLimitResult
from agency_metrics.services.alert_store import AlertStore
from agency_metrics.services.anomaly_scanner import AnomalyScanner
from agency_metrics.services.breakdown import BreakdownEngine
from agency_metrics.services.kpi_aggregator import KpiAggregator
from agency_metrics.services.metrics_source import MetricsSource
from agency_metrics.services.rate_limiter import RateLimiter, get_rate_limit_identifier


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency(request: Request) -> Settings:
    """
    Return the Settings the running app was created with.

    Falls back to the cached get_settings() singleton for apps that were not
    built by create_app().
    """
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


# =============================================================================
# Shared State Dependencies
# =============================================================================

def get_alert_store(request: Request) -> AlertStore:
    return request.app.state.alert_store


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_metrics_source(request: Request) -> MetricsSource:
    return request.app.state.metrics_source


# =============================================================================
# Engine Service Dependencies
# =============================================================================

def get_kpi_aggregator(
    source: Annotated[MetricsSource, Depends(get_metrics_source)],
) -> KpiAggregator:
    return KpiAggregator(source)


def get_breakdown_engine(
    source: Annotated[MetricsSource, Depends(get_metrics_source)],
) -> BreakdownEngine:
    return BreakdownEngine(source)


def get_anomaly_scanner(
    request: Request,
    aggregator: Annotated[KpiAggregator, Depends(get_kpi_aggregator)],
    store: Annotated[AlertStore, Depends(get_alert_store)],
    settings: Annotated[Settings, Depends(get_settings_dependency)],
) -> AnomalyScanner:
    """
    Build a scanner bound to the shared store. A clock placed on
    ``app.state.clock`` (tests) replaces the wall clock.
    """
    clock = getattr(request.app.state, "clock", None)
    kwargs = {"clock": clock} if clock is not None else {}
    return AnomalyScanner(
        aggregator,
        store,
        threshold=settings.anomaly_threshold,
        high_threshold=settings.anomaly_high_threshold,
        window_days=settings.scan_window_days,
        **kwargs,
    )


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]
AlertStoreDep = Annotated[AlertStore, Depends(get_alert_store)]
RateLimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter)]
MetricsSourceDep = Annotated[MetricsSource, Depends(get_metrics_source)]
KpiAggregatorDep = Annotated[KpiAggregator, Depends(get_kpi_aggregator)]
BreakdownEngineDep = Annotated[BreakdownEngine, Depends(get_breakdown_engine)]
AnomalyScannerDep = Annotated[AnomalyScanner, Depends(get_anomaly_scanner)]


# =============================================================================
# Rate Limiting
# =============================================================================

def get_client_ip(request: Request, trusted_proxies: Sequence[str] = ()) -> Optional[str]:
    """
    Caller address used as the rate-limit key.

    The socket peer is authoritative. X-Forwarded-For is only read when the
    peer is one of ``trusted_proxies``; any other caller controls that header.
    """
    peer = request.client.host if request.client else None
    if peer is None or peer not in trusted_proxies:
        return peer
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return peer


def retry_after_seconds(result: RateLimitResult) -> int:
    """Retry-After header value: the remaining window rounded up to seconds."""
    return math.ceil((result.retryAfter or 0) / 1000)


def enforce_rate_limit(action: str, limit_setting: str = "rate_limit_default_max") -> Callable:
    """
    Build a dependency that counts one request against ``{ip}:{action}``.

    Args:
        action: Name of the limited trigger, part of the limiter key.
        limit_setting: Settings attribute holding the per-window maximum.

    Raises:
        HTTPException 429: When the caller's window is exhausted.
    """

    def _check(request: Request, limiter: RateLimiterDep, settings: SettingsDep) -> RateLimitResult:
        identifier = get_rate_limit_identifier(get_client_ip(request, settings.trusted_proxies), action)
        result = limiter.check_rate_limit(
            identifier,
            limit=getattr(settings, limit_setting),
            window_ms=settings.rate_limit_window_ms,
        )
        if not result.allowed:
            raise HTTPException(
                status_code=429,
                detail="Too many requests",
                headers={"Retry-After": str(retry_after_seconds(result))},
            )
        return result

    return _check
