"""
Pytest Configuration and Shared Fixtures for Agency Metrics Tests.

This module provides fixtures shared across the test suite:
- Settings built without reading the environment or a .env file
- Seeded and static (hand-written) MetricsSource instances
- Fixed clocks for the anomaly scanner and the rate limiter
- A fully wired FastAPI app and TestClient per test

Async tests run under pytest-asyncio in auto mode (see pyproject.toml).
"""

from datetime import date, datetime, timezone
from typing import Callable, Dict, Iterator, List, Optional
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from agency_metrics.core.config import Settings
from agency_metrics.main import create_app
from agency_metrics.models import (
    BreakdownDimension,
    BreakdownRow,
    DateRange,
    KpiPoint,
    Metric,
    Platform,
)
from agency_metrics.services.alert_store import AlertStore
from agency_metrics.services.kpi_aggregator import KpiAggregator
from agency_metrics.services.metrics_source import MetricsSource, SeededMetricsSource
from agency_metrics.services.rate_limiter import RateLimiter


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Register custom markers.

    - api: tests that go through the HTTP layer
    """
    config.addinivalue_line('markers', 'api: tests exercising the FastAPI routers')


# ============================================================
# TEST DOUBLES
# ============================================================

class StaticMetricsSource(MetricsSource):
    """
    MetricsSource returning hand-written series and breakdown rows.

    Series are given as plain value lists and labelled with consecutive days
    from the requested range start; the requested range is otherwise ignored.
    Every call is recorded for assertions.
    """

    name = "static"

    def __init__(
        self,
        series: Optional[Dict[Metric, List[float]]] = None,
        breakdown: Optional[List[BreakdownRow]] = None,
    ) -> None:
        self.series = series or {}
        self.breakdown = breakdown or []
        self.series_calls: List[DateRange] = []
        self.breakdown_calls: List[tuple] = []

    async def fetch_series(
        self,
        current: DateRange,
        metric: Metric,
        platform: Platform = Platform.ALL,
    ) -> List[KpiPoint]:
        self.series_calls.append(current)
        start = current.start.toordinal()
        return [
            KpiPoint(label=date.fromordinal(start + offset).isoformat(), value=value)
            for offset, value in enumerate(self.series.get(metric, []))
        ]

    async def fetch_breakdown(
        self,
        current: DateRange,
        metric: Metric,
        by: BreakdownDimension,
        platform: Platform = Platform.ALL,
    ) -> List[BreakdownRow]:
        self.breakdown_calls.append((current, metric, by, platform))
        return list(self.breakdown)


class ManualClock:
    """Millisecond clock the test advances by hand."""

    def __init__(self, start_ms: float = 1_700_000_000_000.0) -> None:
        self.now_ms = start_ms

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, ms: float) -> None:
        self.now_ms += ms


# ============================================================
# SETTINGS
# ============================================================

@pytest.fixture
def settings() -> Settings:
    """Default settings, isolated from the process environment and .env."""
    return Settings(
        _env_file=None,
        metrics_source='seeded',
        database_url=None,
        slack_webhook_url=None,
    )


# ============================================================
# ENGINE FIXTURES
# ============================================================

@pytest.fixture
def seeded_source() -> SeededMetricsSource:
    return SeededMetricsSource()


@pytest.fixture
def static_source_factory() -> Callable[..., StaticMetricsSource]:
    """Build a StaticMetricsSource: factory(series={...}, breakdown=[...])."""
    return StaticMetricsSource


@pytest.fixture
def seeded_aggregator(seeded_source: SeededMetricsSource) -> KpiAggregator:
    return KpiAggregator(seeded_source)


@pytest.fixture
def sample_range() -> DateRange:
    """One full week, 2024-03-01 .. 2024-03-07."""
    return DateRange(start=date(2024, 3, 1), end=date(2024, 3, 7))


@pytest.fixture
def fixed_now() -> datetime:
    """2024-03-08T12:53:20Z, epoch 1709902400000 ms."""
    return datetime(2024, 3, 8, 12, 53, 20, tzinfo=timezone.utc)


@pytest.fixture
def alert_store() -> AlertStore:
    return AlertStore(capacity=100)


@pytest.fixture
def manual_clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def rate_limiter(manual_clock: ManualClock) -> RateLimiter:
    return RateLimiter(default_limit=3, default_window_ms=60_000, clock=manual_clock)


# ============================================================
# API FIXTURES
# ============================================================

@pytest.fixture
def app(settings: Settings, fixed_now: datetime):
    """App wired with fresh stores and a scanner clock frozen at fixed_now."""
    application = create_app(settings)
    application.state.clock = lambda: fixed_now
    return application


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def mock_slack_client() -> Mock:
    """WebhookClient stand-in whose send() reports HTTP 200."""
    client = Mock()
    client.send.return_value = Mock(status_code=200, body='ok')
    return client
