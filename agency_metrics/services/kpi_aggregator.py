"""
KPI aggregation service.

Builds one labelled series per tracked metric (engagement rate, impressions,
people reached) for a range, and merges the three series into per-date rows
for tabular export.

Merge Guarantees:
    - Every label present in any input series appears exactly once.
    - A metric missing for a label yields an empty string in that column;
      the row is kept, never dropped.
    - Rows are sorted lexicographically by label (ISO dates sort
      chronologically).

Usage:
    aggregator = KpiAggregator(source)
    bundle = await aggregator.get_kpis(DateRange(start=..., end=...))
    rows = await aggregator.build_metric_rows("2024-03-01", "2024-03-07")
"""

import logging
from typing import Dict, List, Optional

import pandas as pd

from agency_metrics.models import (
    DateRange,
    KpiBundle,
    KpiPoint,
    KpisResponse,
    Metric,
    MetricRow,
    Platform,
)
from agency_metrics.services.metrics_source import MetricsSource
from agency_metrics.services.range_resolver import parse_range, previous_range


logger = logging.getLogger(__name__)


# Export column per metric, in column order.
EXPORT_COLUMNS: Dict[Metric, str] = {
    Metric.ENGAGEMENT_RATE: "engagement_rate",
    Metric.IMPRESSIONS: "impressions",
    Metric.PEOPLE: "people",
}


def _series_to_pandas(points: List[KpiPoint]) -> pd.Series:
    # object dtype keeps ints as ints once missing cells appear after alignment
    return pd.Series(
        [point.value for point in points],
        index=[point.label for point in points],
        dtype=object,
    )


def merge_metric_rows(bundle: KpiBundle) -> List[MetricRow]:
    """
    Align the three series of a bundle by label into export rows.

    Uses an outer alignment on the label index, so the result holds the union
    of labels. Cells absent from a series come back as empty strings.

    Example:
        >>> bundle = KpiBundle(
        ...     engagementRate=[KpiPoint(label="2024-03-02", value=4.1)],
        ...     impressions=[KpiPoint(label="2024-03-01", value=12000)],
        ...     people=[],
        ... )
        >>> [row.date for row in merge_metric_rows(bundle)]
        ['2024-03-01', '2024-03-02']
    """
    columns = {
        column: _series_to_pandas(bundle.series_for(metric))
        for metric, column in EXPORT_COLUMNS.items()
    }
    frame = pd.DataFrame(columns, columns=list(EXPORT_COLUMNS.values()))
    if frame.empty:
        return []

    frame = frame.sort_index()
    frame = frame.astype(object).where(frame.notna(), "")

    return [
        MetricRow(date=str(label), **{column: values[column] for column in frame.columns})
        for label, values in frame.iterrows()
    ]


class KpiAggregator:
    """
    Produces KPI series for a range from a MetricsSource.
    """

    def __init__(self, source: MetricsSource) -> None:
        self.source = source

    async def get_kpis(self, current: DateRange, platform: Platform = Platform.ALL) -> KpiBundle:
        """
        Fetch the three tracked series for `current`.
        """
        return KpiBundle(
            engagementRate=await self.source.fetch_series(current, Metric.ENGAGEMENT_RATE, platform),
            impressions=await self.source.fetch_series(current, Metric.IMPRESSIONS, platform),
            people=await self.source.fetch_series(current, Metric.PEOPLE, platform),
        )

    async def get_kpis_with_comparison(
        self,
        current: DateRange,
        compare: bool = False,
        platform: Platform = Platform.ALL,
    ) -> KpisResponse:
        """
        GetKpis: the current bundle plus, when `compare` is set, the bundle
        for the previous period of equal length.
        """
        response = KpisResponse(range=current, current=await self.get_kpis(current, platform))
        if compare:
            prior = previous_range(current)
            response.previousRange = prior
            response.previous = await self.get_kpis(prior, platform)
        return response

    async def build_metric_rows(self, start: Optional[str], end: Optional[str]) -> List[MetricRow]:
        """
        Aligned export rows for a range given as ISO strings.

        Raises:
            ValueError: If start/end are missing or not valid ISO dates.
        """
        current = parse_range(start, end)
        bundle = await self.get_kpis(current)
        rows = merge_metric_rows(bundle)
        logger.debug("Built %d metric rows for %s..%s", len(rows), start, end)
        return rows
