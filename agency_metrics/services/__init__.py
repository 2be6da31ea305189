"""
Agency Metrics Services Module

Business logic of the metrics engine. Pure computations are synchronous;
anything that reads a MetricsSource is async.

Services:
- range_resolver: date range presets, normalization and previous period
- seeded_sampler: deterministic FNV-1a seeded pseudo-random stream
- metrics_source: seeded and Postgres providers of series and breakdowns
- kpi_aggregator: KPI bundles, comparison bundles and aligned export rows
- breakdown: per-segment breakdowns with percentage-of-total shares
- period_comparator: current vs previous period deltas
- anomaly_scanner: trailing-window deviation alerts
- alert_store: bounded newest-first alert ledger
- rate_limiter: fixed-window per-key request limiter

All services are consumed by the API layer (agency_metrics/api/).
"""

# =============================================================================
# Ranges and sampling
# =============================================================================

from agency_metrics.services.range_resolver import (
    build_range_from_preset,
    normalize_range,
    parse_range,
    parse_preset,
    previous_range,
    is_iso_date,
    iter_days,
)
from agency_metrics.services.seeded_sampler import SeededSampler, fnv1a_32

# =============================================================================
# Data access
# =============================================================================

from agency_metrics.services.metrics_source import (
    MetricsSource,
    SeededMetricsSource,
    PostgresMetricsSource,
    create_metrics_source,
)

# =============================================================================
# Aggregation and comparison
# =============================================================================

from agency_metrics.services.kpi_aggregator import KpiAggregator, merge_metric_rows
from agency_metrics.services.breakdown import (
    BreakdownEngine,
    parse_metric,
    parse_breakdown,
    parse_platform,
    to_export_rows,
)
from agency_metrics.services.period_comparator import compare_series, compare_bundles

# =============================================================================
# Alerting and throttling
# =============================================================================

from agency_metrics.services.anomaly_scanner import AnomalyScanner, evaluate_series
from agency_metrics.services.alert_store import AlertStore
from agency_metrics.services.rate_limiter import RateLimiter, get_rate_limit_identifier


__all__ = [
    # range_resolver
    'build_range_from_preset',
    'normalize_range',
    'parse_range',
    'parse_preset',
    'previous_range',
    'is_iso_date',
    'iter_days',
    # seeded_sampler
    'SeededSampler',
    'fnv1a_32',
    # metrics_source
    'MetricsSource',
    'SeededMetricsSource',
    'PostgresMetricsSource',
    'create_metrics_source',
    # kpi_aggregator
    'KpiAggregator',
    'merge_metric_rows',
    # breakdown
    'BreakdownEngine',
    'parse_metric',
    'parse_breakdown',
    'parse_platform',
    'to_export_rows',
    # period_comparator
    'compare_series',
    'compare_bundles',
    # anomaly_scanner
    'AnomalyScanner',
    'evaluate_series',
    # alert_store
    'AlertStore',
    # rate_limiter
    'RateLimiter',
    'get_rate_limit_identifier',
]
