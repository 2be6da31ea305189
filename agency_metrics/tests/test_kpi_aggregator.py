"""
Test suite for KPI aggregation and export row alignment.

Verifies:
1. Every day of the range gets one point per tracked metric
2. Seeded values are reproducible and stay inside their envelopes
3. The comparison bundle covers the previous period of equal length
4. Export rows hold the union of labels with blanks for missing metrics
"""

from datetime import date

import pytest

from agency_metrics.models import DateRange, KpiBundle, KpiPoint, Metric, Platform
from agency_metrics.services.kpi_aggregator import KpiAggregator, merge_metric_rows
from agency_metrics.services.metrics_source import SERIES_ENVELOPES


class TestGetKpis:

    async def test_one_point_per_day_per_metric(self, seeded_aggregator: KpiAggregator, sample_range: DateRange) -> None:
        bundle = await seeded_aggregator.get_kpis(sample_range)

        expected_labels = [f'2024-03-0{day}' for day in range(1, 8)]
        for metric in Metric:
            series = bundle.series_for(metric)
            assert [point.label for point in series] == expected_labels

    async def test_values_within_envelopes(self, seeded_aggregator: KpiAggregator, sample_range: DateRange) -> None:
        bundle = await seeded_aggregator.get_kpis(sample_range)

        for metric, (low, high) in SERIES_ENVELOPES.items():
            for point in bundle.series_for(metric):
                assert low <= point.value <= high

    async def test_rates_have_two_decimals_and_counts_are_integers(
        self,
        seeded_aggregator: KpiAggregator,
        sample_range: DateRange,
    ) -> None:
        bundle = await seeded_aggregator.get_kpis(sample_range)

        assert all(round(point.value, 2) == point.value for point in bundle.engagementRate)
        assert all(isinstance(point.value, int) for point in bundle.impressions)
        assert all(isinstance(point.value, int) for point in bundle.people)

    async def test_reproducible(self, seeded_aggregator: KpiAggregator, sample_range: DateRange) -> None:
        first = await seeded_aggregator.get_kpis(sample_range)
        second = await seeded_aggregator.get_kpis(sample_range)

        assert first == second

    async def test_overlapping_ranges_agree_on_shared_days(self, seeded_aggregator: KpiAggregator) -> None:
        week = await seeded_aggregator.get_kpis(DateRange(start=date(2024, 3, 1), end=date(2024, 3, 7)))
        tail = await seeded_aggregator.get_kpis(DateRange(start=date(2024, 3, 5), end=date(2024, 3, 10)))

        shared = {point.label: point.value for point in tail.impressions}
        for point in week.impressions:
            if point.label in shared:
                assert shared[point.label] == point.value

    async def test_platform_changes_values(self, seeded_aggregator: KpiAggregator, sample_range: DateRange) -> None:
        everything = await seeded_aggregator.get_kpis(sample_range)
        tiktok = await seeded_aggregator.get_kpis(sample_range, Platform.TIKTOK)

        assert everything.impressions != tiktok.impressions

    async def test_empty_source_gives_empty_series(self, static_source_factory, sample_range: DateRange) -> None:
        aggregator = KpiAggregator(static_source_factory())

        bundle = await aggregator.get_kpis(sample_range)

        assert bundle.engagementRate == [] and bundle.impressions == [] and bundle.people == []


class TestComparison:

    async def test_without_compare_has_no_previous(self, seeded_aggregator: KpiAggregator, sample_range: DateRange) -> None:
        response = await seeded_aggregator.get_kpis_with_comparison(sample_range)

        assert response.previous is None
        assert response.previousRange is None

    async def test_compare_fetches_previous_period(self, seeded_aggregator: KpiAggregator, sample_range: DateRange) -> None:
        response = await seeded_aggregator.get_kpis_with_comparison(sample_range, compare=True)

        assert response.previousRange == DateRange(start=date(2024, 2, 23), end=date(2024, 2, 29))
        assert len(response.previous.impressions) == len(response.current.impressions)
        assert response.previous.impressions[-1].label == '2024-02-29'


class TestMergeMetricRows:

    def test_union_of_labels_with_blanks(self) -> None:
        bundle = KpiBundle(
            engagementRate=[KpiPoint(label='2024-03-02', value=4.1)],
            impressions=[
                KpiPoint(label='2024-03-01', value=12000),
                KpiPoint(label='2024-03-02', value=13500),
            ],
            people=[KpiPoint(label='2024-03-03', value=6100)],
        )

        rows = merge_metric_rows(bundle)

        assert [row.date for row in rows] == ['2024-03-01', '2024-03-02', '2024-03-03']
        assert rows[0].engagement_rate == '' and rows[0].impressions == 12000 and rows[0].people == ''
        assert rows[1].engagement_rate == 4.1 and rows[1].impressions == 13500 and rows[1].people == ''
        assert rows[2].engagement_rate == '' and rows[2].impressions == '' and rows[2].people == 6100

    def test_rows_sorted_lexicographically(self) -> None:
        bundle = KpiBundle(
            impressions=[KpiPoint(label='2024-03-10', value=1), KpiPoint(label='2024-03-09', value=2)],
        )

        rows = merge_metric_rows(bundle)

        assert [row.date for row in rows] == ['2024-03-09', '2024-03-10']

    def test_empty_bundle(self) -> None:
        assert merge_metric_rows(KpiBundle()) == []

    async def test_build_metric_rows_requires_bounds(self, seeded_aggregator: KpiAggregator) -> None:
        with pytest.raises(ValueError, match='start/end required'):
            await seeded_aggregator.build_metric_rows(None, '2024-03-07')

    async def test_build_metric_rows_full_week(self, seeded_aggregator: KpiAggregator) -> None:
        rows = await seeded_aggregator.build_metric_rows('2024-03-01', '2024-03-07')

        assert len(rows) == 7
        assert all(row.impressions != '' for row in rows)
