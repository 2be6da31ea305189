"""
MetricsSource capability interface and its implementations.

The engine never fetches data itself. Aggregation and breakdown services are
handed a MetricsSource and await its two capabilities:

    fetch_series(range, metric, platform)       -> List[KpiPoint]
    fetch_breakdown(range, metric, by, platform) -> List[BreakdownRow]

Implementations:
    SeededMetricsSource: Reproducible synthetic data keyed through the
        SeededSampler. Used for development, demos and tests.
    PostgresMetricsSource: Reads the metric_daily / metric_breakdown_daily
        tables through the asyncpg pool.

The implementation is selected by configuration (Settings.metrics_source)
through create_metrics_source(); nothing else in the codebase names a
concrete source.

Usage:
    source = create_metrics_source(get_settings())
    series = await source.fetch_series(current_range, Metric.IMPRESSIONS)
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from agency_metrics.core.config import Settings
from agency_metrics.core.database import execute_query
from agency_metrics.models import (
    BreakdownDimension,
    BreakdownRow,
    DateRange,
    KpiPoint,
    Metric,
    MetricsSourceKind,
    Platform,
)
from agency_metrics.services.formatting import round_half_up, round_to_fixed
from agency_metrics.services.range_resolver import iter_days
from agency_metrics.services.seeded_sampler import SeededSampler
from agency_metrics.services.segments import segments_for
from agency_metrics.sql.metric_queries import get_breakdown_query, get_daily_series_query


logger = logging.getLogger(__name__)


# =============================================================================
# Synthetic value envelopes
# =============================================================================

# Daily series (low, high) per metric for the seeded source.
SERIES_ENVELOPES = {
    Metric.ENGAGEMENT_RATE: (3.5, 5.5),
    Metric.IMPRESSIONS: (12_000.0, 18_000.0),
    Metric.PEOPLE: (5_400.0, 7_200.0),
}

# Breakdown magnitude (base, spread) per dimension: value = base + r * spread.
BREAKDOWN_MAGNITUDES = {
    BreakdownDimension.GENDER: (1000.0, 9000.0),
    BreakdownDimension.AGE: (800.0, 7000.0),
    BreakdownDimension.GEO: (400.0, 6000.0),
}

# Engagement-rate breakdown segments are percentages in [1.0, 10.0].
RATE_SEGMENT_BASE: float = 1.0
RATE_SEGMENT_SPREAD: float = 9.0


# =============================================================================
# Interface
# =============================================================================


class MetricsSource(ABC):
    """
    Capability interface for anything that can supply raw metric data.
    """

    name: str = "abstract"

    @abstractmethod
    async def fetch_series(
        self,
        current: DateRange,
        metric: Metric,
        platform: Platform = Platform.ALL,
    ) -> List[KpiPoint]:
        """
        Daily points for one metric, labelled with ISO dates, chronological.
        Days without data may be absent.
        """

    @abstractmethod
    async def fetch_breakdown(
        self,
        current: DateRange,
        metric: Metric,
        by: BreakdownDimension,
        platform: Platform = Platform.ALL,
    ) -> List[BreakdownRow]:
        """
        Per-segment values for one metric and dimension, without shares.
        """


# =============================================================================
# Seeded (synthetic) source
# =============================================================================


class SeededMetricsSource(MetricsSource):
    """
    Deterministic synthetic data.

    Daily values are seeded per (metric, platform, day), so two overlapping
    ranges report the same value for the days they share. Breakdowns are
    seeded per (start, end, metric, dimension, platform), so repeating a
    request reproduces it exactly.
    """

    name = "seeded"

    def series_value(self, metric: Metric, platform: Platform, day_label: str) -> float:
        low, high = SERIES_ENVELOPES[metric]
        sampler = SeededSampler(f"{metric.value}|{platform.value}|{day_label}")
        raw = sampler.uniform(low, high)
        if metric.is_rate:
            return round_to_fixed(raw, 2)
        return round_half_up(raw)

    async def fetch_series(
        self,
        current: DateRange,
        metric: Metric,
        platform: Platform = Platform.ALL,
    ) -> List[KpiPoint]:
        points: List[KpiPoint] = []
        for day in iter_days(current):
            label = day.isoformat()
            points.append(KpiPoint(label=label, value=self.series_value(metric, platform, label)))
        return points

    def generate_breakdown(
        self,
        start: str,
        end: str,
        metric: Metric,
        by: BreakdownDimension,
        platform: Platform,
    ) -> List[BreakdownRow]:
        """
        Generate segment values from the seed "start|end|metric|by|platform".

        Draw order is fixed: one draw per segment for the magnitude (geo is
        then sorted by magnitude, descending), followed for engagement rate
        by one more draw per row, in row order, for the rate value.
        """
        rand = SeededSampler(f"{start}|{end}|{metric.value}|{by.value}|{platform.value}")
        base, spread = BREAKDOWN_MAGNITUDES[by]

        rows = [
            BreakdownRow(key=key, label=label, value=round_half_up(base + rand() * spread))
            for key, label in segments_for(by)
        ]
        if by is BreakdownDimension.GEO:
            rows = sorted(rows, key=lambda row: row.value, reverse=True)

        if metric.is_rate:
            rows = [
                row.model_copy(
                    update={"value": round_to_fixed(RATE_SEGMENT_BASE + rand() * RATE_SEGMENT_SPREAD, 2)}
                )
                for row in rows
            ]
        return rows

    async def fetch_breakdown(
        self,
        current: DateRange,
        metric: Metric,
        by: BreakdownDimension,
        platform: Platform = Platform.ALL,
    ) -> List[BreakdownRow]:
        return self.generate_breakdown(
            current.start.isoformat(),
            current.end.isoformat(),
            metric,
            by,
            platform,
        )


# =============================================================================
# Postgres source
# =============================================================================


def _number(value: Any) -> float:
    if value is None:
        return 0.0
    return float(value)


class PostgresMetricsSource(MetricsSource):
    """
    Real daily metrics read through the shared asyncpg pool.
    """

    name = "postgres"

    async def fetch_series(
        self,
        current: DateRange,
        metric: Metric,
        platform: Platform = Platform.ALL,
    ) -> List[KpiPoint]:
        filtered = platform is not Platform.ALL
        query = get_daily_series_query(metric, platform_filter=filtered)
        args: List[Any] = [metric.value, current.start, current.end]
        if filtered:
            args.append(platform.value)

        rows = await execute_query(query, *args)
        return [
            KpiPoint(label=row['data_date'].isoformat(), value=_number(row['value']))
            for row in rows
        ]

    async def fetch_breakdown(
        self,
        current: DateRange,
        metric: Metric,
        by: BreakdownDimension,
        platform: Platform = Platform.ALL,
    ) -> List[BreakdownRow]:
        filtered = platform is not Platform.ALL
        query = get_breakdown_query(metric, platform_filter=filtered)
        args: List[Any] = [metric.value, by.value, current.start, current.end]
        if filtered:
            args.append(platform.value)

        rows = await execute_query(query, *args)
        return [
            BreakdownRow(
                key=row['segment_key'],
                label=row['segment_label'] or row['segment_key'],
                value=_number(row['value']),
            )
            for row in rows
        ]


# =============================================================================
# Factory
# =============================================================================


def create_metrics_source(settings: Settings, kind: Optional[MetricsSourceKind] = None) -> MetricsSource:
    """
    Build the MetricsSource selected by configuration.

    Raises:
        ValueError: If the postgres source is selected without DATABASE_URL.
    """
    kind = kind or settings.metrics_source
    if kind is MetricsSourceKind.POSTGRES:
        if not settings.database_url:
            raise ValueError("METRICS_SOURCE=postgres requires DATABASE_URL")
        logger.info("Using Postgres metrics source")
        return PostgresMetricsSource()

    logger.info("Using seeded metrics source")
    return SeededMetricsSource()
