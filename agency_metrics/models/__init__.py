"""
Package initialization file for the Agency Metrics models.

Re-exports all Pydantic schemas and enumerations so other modules can import
them from agency_metrics.models directly.

Usage:
    from agency_metrics.models import DateRange, KpiPoint, Metric, Alert
"""

# =============================================================================
# Enums
# =============================================================================

from agency_metrics.models.enums import (
    AlertSeverity,
    BreakdownDimension,
    Metric,
    MetricsSourceKind,
    Platform,
    RangePreset,
)


# =============================================================================
# Schemas
# =============================================================================

from agency_metrics.models.schemas import (
    # Ranges
    DateRange,
    RangeQuery,
    RangeResolution,
    # KPI series
    KpiPoint,
    KpiSeries,
    KpiBundle,
    KpisResponse,
    MetricRow,
    MetricRowsResponse,
    # Breakdowns
    BreakdownRow,
    BreakdownResponse,
    BreakdownExportRow,
    # Period comparison
    MetricDelta,
    KpiSummaryResponse,
    # Alerts
    Alert,
    AlertListResponse,
    ScanResponse,
    # Rate limiting
    RateLimitResult,
)


__all__ = [
    'AlertSeverity',
    'BreakdownDimension',
    'Metric',
    'MetricsSourceKind',
    'Platform',
    'RangePreset',
    'DateRange',
    'RangeQuery',
    'RangeResolution',
    'KpiPoint',
    'KpiSeries',
    'KpiBundle',
    'KpisResponse',
    'MetricRow',
    'MetricRowsResponse',
    'BreakdownRow',
    'BreakdownResponse',
    'BreakdownExportRow',
    'MetricDelta',
    'KpiSummaryResponse',
    'Alert',
    'AlertListResponse',
    'ScanResponse',
    'RateLimitResult',
]
