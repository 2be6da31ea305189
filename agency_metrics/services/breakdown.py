"""
Breakdown engine: segments a metric's total by gender, age bracket or country.

Behaviour:
    - gender rows keep the declared order female, male, other
    - age rows keep the declared bracket order 13-17 ... 65+
    - geo rows are sorted by value, descending
    - additive metrics (impressions, people) get pct = value / total on every
      row whenever total > 0
    - engagement-rate rows are themselves percentages and never carry pct
    - an empty or all-zero breakdown has total 0 and no pct (never NaN)

Unknown metric / dimension / platform strings fall back to impressions,
gender and all. Missing start/end is a caller error (ValueError).
"""

import logging
from typing import List, Optional, Type, TypeVar, Union

from agency_metrics.models import (
    BreakdownDimension,
    BreakdownExportRow,
    BreakdownResponse,
    BreakdownRow,
    Metric,
    Platform,
)
from agency_metrics.services.formatting import round_half_up
from agency_metrics.services.metrics_source import MetricsSource
from agency_metrics.services.range_resolver import parse_range
from agency_metrics.services.segments import declared_order


logger = logging.getLogger(__name__)

DEFAULT_METRIC = Metric.IMPRESSIONS
DEFAULT_BREAKDOWN = BreakdownDimension.GENDER
DEFAULT_PLATFORM = Platform.ALL

E = TypeVar("E", Metric, BreakdownDimension, Platform)


def _parse_enum(enum_cls: Type[E], value: Union[E, str, None], default: E) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls((value or "").strip().lower())
    except ValueError:
        return default


def parse_metric(value: Union[Metric, str, None]) -> Metric:
    return _parse_enum(Metric, value, DEFAULT_METRIC)


def parse_breakdown(value: Union[BreakdownDimension, str, None]) -> BreakdownDimension:
    return _parse_enum(BreakdownDimension, value, DEFAULT_BREAKDOWN)


def parse_platform(value: Union[Platform, str, None]) -> Platform:
    return _parse_enum(Platform, value, DEFAULT_PLATFORM)


def order_rows(rows: List[BreakdownRow], by: BreakdownDimension) -> List[BreakdownRow]:
    """
    Geo by value descending; gender/age by declared segment order, with any
    segment the catalog does not know appended in arrival order.
    """
    if by is BreakdownDimension.GEO:
        return sorted(rows, key=lambda row: row.value, reverse=True)
    order = declared_order(by)
    return sorted(rows, key=lambda row: order.get(row.key, len(order)))


def attach_shares(rows: List[BreakdownRow], metric: Metric) -> List[BreakdownRow]:
    """
    Attach pct = value / total to additive rows. Rate rows, and any row set
    whose total is not positive, are returned without pct.
    """
    total = sum(row.value for row in rows)
    if metric.is_rate or total <= 0:
        return [row.model_copy(update={"pct": None}) for row in rows]
    return [row.model_copy(update={"pct": row.value / total}) for row in rows]


class BreakdownEngine:
    """
    Deterministic per-segment breakdowns over a MetricsSource.
    """

    def __init__(self, source: MetricsSource) -> None:
        self.source = source

    async def get_breakdown(
        self,
        start: Optional[str],
        end: Optional[str],
        metric: Union[Metric, str, None] = None,
        by: Union[BreakdownDimension, str, None] = None,
        platform: Union[Platform, str, None] = None,
    ) -> BreakdownResponse:
        """
        Segment `metric` by `by` for the range and platform filter.

        Raises:
            ValueError: If start/end are missing or malformed.
        """
        current = parse_range(start, end)
        resolved_metric = parse_metric(metric)
        resolved_by = parse_breakdown(by)
        resolved_platform = parse_platform(platform)

        rows = await self.source.fetch_breakdown(current, resolved_metric, resolved_by, resolved_platform)
        rows = attach_shares(order_rows(rows, resolved_by), resolved_metric)
        total = sum(row.value for row in rows)

        return BreakdownResponse(
            metric=resolved_metric,
            by=resolved_by,
            platform=resolved_platform,
            rows=rows,
            total=total,
        )


def to_export_rows(response: BreakdownResponse) -> List[BreakdownExportRow]:
    """
    Flatten a breakdown for document exporters; pct becomes whole percent,
    or an empty cell when the row carries no share.
    """
    return [
        BreakdownExportRow(
            segment_key=row.key,
            segment_label=row.label,
            value=row.value,
            pct=round_half_up(row.pct * 100) if row.pct is not None else "",
        )
        for row in response.rows
    ]
