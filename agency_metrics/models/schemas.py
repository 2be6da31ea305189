"""
Pydantic request/response models for the Agency Metrics backend.

This module provides type-safe data validation and serialization for the
engine's value types (ranges, KPI series, breakdown rows, alerts, rate-limit
outcomes) and for the API contracts built on top of them.

Field naming follows the dashboard's JSON contracts (camelCase where the
frontend consumes the payload directly, snake_case for export rows whose keys
become CSV column headers).

All models use Pydantic v2 syntax.
"""

from datetime import date as DateType
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from agency_metrics.models.enums import (
    AlertSeverity,
    BreakdownDimension,
    Metric,
    Platform,
    RangePreset,
)


Number = Union[int, float]


# =============================================================================
# Ranges
# =============================================================================


class DateRange(BaseModel):
    """
    Inclusive start/end date pair used as the unit of aggregation and comparison.

    Immutable once constructed. Construction fails when start > end.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {"start": "2024-03-01", "end": "2024-03-07"}
        }
    )

    start: DateType = Field(..., description="First day of the range (inclusive)")
    end: DateType = Field(..., description="Last day of the range (inclusive)")

    @model_validator(mode='after')
    def _check_order(self) -> 'DateRange':
        if self.start > self.end:
            raise ValueError(
                f"range start {self.start.isoformat()} is after end {self.end.isoformat()}"
            )
        return self

    @property
    def duration_days(self) -> int:
        """Number of days covered, counting both ends."""
        return (self.end - self.start).days + 1


class RangeQuery(BaseModel):
    """
    ISO-string form of a range as exchanged with the dashboard toolbar.

    `from` is a Python keyword, so the field is `from_` with alias "from".
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        json_schema_extra={
            "example": {"from": "2024-03-01", "to": "2024-03-07", "preset": "last_7_days"}
        }
    )

    from_: str = Field(..., alias="from", description="Start date, YYYY-MM-DD")
    to: str = Field(..., description="End date, YYYY-MM-DD")
    preset: Optional[RangePreset] = Field(
        default=None,
        description="Preset the range was built from, if any"
    )

    def to_range(self) -> DateRange:
        return DateRange(
            start=DateType.fromisoformat(self.from_),
            end=DateType.fromisoformat(self.to),
        )


class RangeResolution(BaseModel):
    """
    A resolved range together with its symmetric previous period.
    """
    range: DateRange
    previousRange: DateRange
    durationDays: int = Field(..., ge=1)
    preset: Optional[RangePreset] = None


# =============================================================================
# KPI series
# =============================================================================


class KpiPoint(BaseModel):
    """
    One labelled value of a metric series. Labels are unique within a series.
    """
    model_config = ConfigDict(frozen=True)

    label: str = Field(..., description="Per-day identifier (ISO date or display label)")
    value: Number = Field(..., description="Metric value for the day")


KpiSeries = List[KpiPoint]


class KpiBundle(BaseModel):
    """
    The three tracked series for one range.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "engagementRate": [{"label": "2024-03-01", "value": 4.2}],
                "impressions": [{"label": "2024-03-01", "value": 14500}],
                "people": [{"label": "2024-03-01", "value": 6100}],
            }
        }
    )

    engagementRate: List[KpiPoint] = Field(default_factory=list)
    impressions: List[KpiPoint] = Field(default_factory=list)
    people: List[KpiPoint] = Field(default_factory=list)

    def series_for(self, metric: Metric) -> List[KpiPoint]:
        if metric is Metric.ENGAGEMENT_RATE:
            return self.engagementRate
        if metric is Metric.IMPRESSIONS:
            return self.impressions
        return self.people


class KpisResponse(BaseModel):
    """
    GetKpis contract: the current bundle and, when comparison was requested,
    the bundle for the previous period of equal length.
    """
    range: DateRange
    current: KpiBundle
    previousRange: Optional[DateRange] = None
    previous: Optional[KpiBundle] = None


class MetricRow(BaseModel):
    """
    One aligned export row. A metric missing for the date is an empty string.
    """
    date: str
    engagement_rate: Union[Number, str] = ""
    impressions: Union[Number, str] = ""
    people: Union[Number, str] = ""


class MetricRowsResponse(BaseModel):
    start: str
    end: str
    rows: List[MetricRow]


# =============================================================================
# Breakdowns
# =============================================================================


class BreakdownRow(BaseModel):
    """
    One segment of a breakdown.

    `pct` (0..1 share of the total) is only set for additive metrics; an
    engagement-rate segment value is already a percentage.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {"key": "female", "label": "Female", "value": 5421, "pct": 0.41}
        }
    )

    key: str = Field(..., description="Stable machine identifier, e.g. 'female', '18-24', 'US'")
    label: str = Field(..., description="Human readable label")
    value: Number = Field(..., description="Segment total (or average rate) in range")
    pct: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Share of the total, additive metrics only"
    )


class BreakdownResponse(BaseModel):
    metric: Metric
    by: BreakdownDimension
    platform: Platform
    rows: List[BreakdownRow]
    total: Number


class BreakdownExportRow(BaseModel):
    """
    Flattened breakdown row handed to document exporters; pct in whole percent.
    """
    segment_key: str
    segment_label: str
    value: Number
    pct: Union[int, str] = ""


# =============================================================================
# Period comparison
# =============================================================================


class MetricDelta(BaseModel):
    """
    Change of one metric between the current and the previous period.

    Rates are compared by average, additive metrics by sum.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "metric": "impressions",
                "current": 106300,
                "previous": 98200,
                "delta": 8100,
                "pctChange": 0.0825,
                "sign": "+",
                "label": "+8.1K vs prev",
                "positive": True
            }
        }
    )

    metric: Metric
    current: float
    previous: float
    delta: float
    pctChange: Optional[float] = Field(
        default=None,
        description="delta / previous; None when the previous aggregate is 0"
    )
    sign: str = Field(..., pattern=r"^[+-]$")
    label: str
    positive: bool


class KpiSummaryResponse(BaseModel):
    range: DateRange
    previousRange: DateRange
    deltas: List[MetricDelta]


# =============================================================================
# Alerts
# =============================================================================


class Alert(BaseModel):
    """
    An anomaly alert. Immutable once created; only ever evicted.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "Impressions-1709900000000",
                "title": "Impressions: +141% vs 7d avg",
                "severity": "high",
                "createdAt": "2024-03-08T12:53:20.000Z"
            }
        }
    )

    id: str
    title: str
    severity: AlertSeverity
    createdAt: str = Field(..., description="ISO-8601 creation instant (UTC)")


class AlertListResponse(BaseModel):
    alerts: List[Alert]


class ScanResponse(BaseModel):
    ok: bool = True
    range: DateRange
    raised: List[Alert] = Field(default_factory=list)


# =============================================================================
# Rate limiting
# =============================================================================


class RateLimitResult(BaseModel):
    """
    Outcome of one rate-limit check. Denial is a value, not an exception.
    """
    allowed: bool
    remaining: int = Field(..., ge=0)
    retryAfter: Optional[int] = Field(
        default=None,
        ge=0,
        description="Milliseconds until the current window expires (denials only)"
    )
