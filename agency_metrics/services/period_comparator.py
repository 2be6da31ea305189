"""
Period comparison service.

Quantifies the change of a metric between the current series and the series
for the previous period of equal length.

Aggregation Semantics:
    - Rate metrics (engagement rate) compare averages
    - Additive metrics (impressions, people reached) compare sums
    - An empty series aggregates to 0

Delta Label:
    "{sign}{|delta| formatted}{ unit} vs prev", sign '+' when delta >= 0.
    Engagement rate deltas are formatted with one decimal and the unit
    'pts'; additive deltas use compact notation (8.1K, 1.2M) with no unit.

No previous series (comparison disabled, or nothing to compare against) is
the default state, not an error: no delta is produced.
"""

from typing import List, Optional, Sequence

import numpy as np

from agency_metrics.models import KpiBundle, KpiPoint, Metric, MetricDelta
from agency_metrics.services.formatting import format_compact_number, format_one_decimal


RATE_UNIT = "pts"


def series_values(series: Sequence[KpiPoint]) -> np.ndarray:
    return np.array([point.value for point in series], dtype=np.float64)


def average(series: Sequence[KpiPoint]) -> float:
    if len(series) == 0:
        return 0.0
    return float(np.mean(series_values(series)))


def total(series: Sequence[KpiPoint]) -> float:
    if len(series) == 0:
        return 0.0
    return float(np.sum(series_values(series)))


def aggregate(series: Sequence[KpiPoint], metric: Metric) -> float:
    """Average for rate metrics, sum for additive ones."""
    return average(series) if metric.is_rate else total(series)


def format_delta_label(delta: float, metric: Metric) -> str:
    sign = "+" if delta >= 0 else "-"
    if metric.is_rate:
        return f"{sign}{format_one_decimal(abs(delta))} {RATE_UNIT} vs prev"
    return f"{sign}{format_compact_number(abs(delta))} vs prev"


def compare_series(
    current: Sequence[KpiPoint],
    previous: Optional[Sequence[KpiPoint]],
    metric: Metric,
) -> Optional[MetricDelta]:
    """
    Compare one metric across two periods.

    Returns:
        MetricDelta, or None when there is no previous series to compare to.

    Example:
        >>> cur = [KpiPoint(label="d1", value=10_000), KpiPoint(label="d2", value=12_000)]
        >>> prev = [KpiPoint(label="d0", value=9_000), KpiPoint(label="d-1", value=11_000)]
        >>> compare_series(cur, prev, Metric.IMPRESSIONS).label
        '+2K vs prev'
    """
    if not previous:
        return None

    current_value = aggregate(current, metric)
    previous_value = aggregate(previous, metric)
    delta = current_value - previous_value
    pct_change = delta / previous_value if previous_value != 0 else None

    return MetricDelta(
        metric=metric,
        current=current_value,
        previous=previous_value,
        delta=delta,
        pctChange=pct_change,
        sign="+" if delta >= 0 else "-",
        label=format_delta_label(delta, metric),
        positive=delta >= 0,
    )


def compare_bundles(current: KpiBundle, previous: Optional[KpiBundle]) -> List[MetricDelta]:
    """
    Deltas for every tracked metric that has a non-empty previous series,
    in the dashboard's panel order (engagement rate, impressions, people).
    """
    if previous is None:
        return []

    deltas: List[MetricDelta] = []
    for metric in (Metric.ENGAGEMENT_RATE, Metric.IMPRESSIONS, Metric.PEOPLE):
        delta = compare_series(current.series_for(metric), previous.series_for(metric), metric)
        if delta is not None:
            deltas.append(delta)
    return deltas
