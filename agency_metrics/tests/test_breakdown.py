"""
Test suite for the breakdown engine.

Verifies segment ordering per dimension, percentage-of-total shares for
additive metrics, the absence of shares for engagement rate and for empty
totals, input fallbacks, and reproducibility of seeded breakdowns.
"""

import pytest

from agency_metrics.models import BreakdownDimension, BreakdownResponse, BreakdownRow, Metric, Platform
from agency_metrics.services.breakdown import (
    BreakdownEngine,
    attach_shares,
    order_rows,
    parse_breakdown,
    parse_metric,
    parse_platform,
    to_export_rows,
)
from agency_metrics.services.segments import AGE_BRACKETS, COUNTRY_CODES


START, END = '2024-03-01', '2024-03-07'


@pytest.fixture
def engine(seeded_source) -> BreakdownEngine:
    return BreakdownEngine(seeded_source)


class TestShares:

    @pytest.mark.parametrize('by', list(BreakdownDimension))
    @pytest.mark.parametrize('metric', [Metric.IMPRESSIONS, Metric.PEOPLE])
    async def test_additive_shares_sum_to_one(self, engine: BreakdownEngine, metric: Metric, by: BreakdownDimension) -> None:
        response = await engine.get_breakdown(START, END, metric=metric, by=by)

        assert response.total > 0
        assert all(row.pct is not None for row in response.rows)
        assert abs(sum(row.pct for row in response.rows) - 1.0) <= 1e-9

    async def test_engagement_rate_rows_have_no_share(self, engine: BreakdownEngine) -> None:
        response = await engine.get_breakdown(START, END, metric='engagement_rate', by='age')

        assert all(row.pct is None for row in response.rows)
        assert all(1.0 <= row.value <= 10.0 for row in response.rows)

    def test_zero_total_has_no_share(self) -> None:
        rows = [BreakdownRow(key='female', label='Female', value=0), BreakdownRow(key='male', label='Male', value=0)]

        shared = attach_shares(rows, Metric.IMPRESSIONS)

        assert all(row.pct is None for row in shared)

    async def test_empty_breakdown(self, static_source_factory) -> None:
        engine = BreakdownEngine(static_source_factory(breakdown=[]))

        response = await engine.get_breakdown(START, END)

        assert response.rows == []
        assert response.total == 0


class TestOrdering:

    async def test_gender_declared_order(self, engine: BreakdownEngine) -> None:
        response = await engine.get_breakdown(START, END, by='gender')

        assert [row.key for row in response.rows] == ['female', 'male', 'other']

    async def test_age_declared_order(self, engine: BreakdownEngine) -> None:
        response = await engine.get_breakdown(START, END, by='age')

        assert [row.key for row in response.rows] == AGE_BRACKETS

    @pytest.mark.parametrize('metric', list(Metric))
    async def test_geo_sorted_by_value_descending(self, engine: BreakdownEngine, metric: Metric) -> None:
        response = await engine.get_breakdown(START, END, metric=metric, by='geo')
        values = [row.value for row in response.rows]

        assert values == sorted(values, reverse=True)
        assert sorted(row.key for row in response.rows) == sorted(COUNTRY_CODES)

    def test_unknown_segment_goes_last(self) -> None:
        rows = [
            BreakdownRow(key='unknown', label='Unknown', value=5),
            BreakdownRow(key='male', label='Male', value=3),
            BreakdownRow(key='female', label='Female', value=4),
        ]

        ordered = order_rows(rows, BreakdownDimension.GENDER)

        assert [row.key for row in ordered] == ['female', 'male', 'unknown']


class TestFallbacks:

    def test_unknown_values_fall_back(self) -> None:
        assert parse_metric('clicks') is Metric.IMPRESSIONS
        assert parse_breakdown('income') is BreakdownDimension.GENDER
        assert parse_platform('myspace') is Platform.ALL
        assert parse_metric(None) is Metric.IMPRESSIONS

    def test_parsing_is_case_insensitive(self) -> None:
        assert parse_metric(' People ') is Metric.PEOPLE
        assert parse_platform('TikTok') is Platform.TIKTOK

    async def test_missing_bounds_raise(self, engine: BreakdownEngine) -> None:
        with pytest.raises(ValueError, match='start/end required'):
            await engine.get_breakdown(None, END)

    async def test_platform_forwarded_to_source(self, static_source_factory) -> None:
        source = static_source_factory()

        await BreakdownEngine(source).get_breakdown(START, END, metric='people', by='geo', platform='instagram')

        (_, metric, by, platform), = source.breakdown_calls
        assert (metric, by, platform) == (Metric.PEOPLE, BreakdownDimension.GEO, Platform.INSTAGRAM)


class TestDeterminism:

    async def test_identical_requests_identical_rows(self, engine: BreakdownEngine) -> None:
        first = await engine.get_breakdown(START, END, metric='people', by='geo', platform='tiktok')
        second = await engine.get_breakdown(START, END, metric='people', by='geo', platform='tiktok')

        assert first == second

    async def test_inputs_change_rows(self, engine: BreakdownEngine) -> None:
        week = await engine.get_breakdown(START, END, by='age')
        longer = await engine.get_breakdown(START, '2024-03-08', by='age')

        assert [row.value for row in week.rows] != [row.value for row in longer.rows]


class TestExportRows:

    def test_pct_in_whole_percent_or_blank(self) -> None:
        response = BreakdownResponse(
            metric=Metric.IMPRESSIONS,
            by=BreakdownDimension.GENDER,
            platform=Platform.ALL,
            rows=[
                BreakdownRow(key='female', label='Female', value=400, pct=0.4),
                BreakdownRow(key='male', label='Male', value=600, pct=0.6),
                BreakdownRow(key='other', label='Other', value=0),
            ],
            total=1000,
        )

        rows = to_export_rows(response)

        assert [row.pct for row in rows] == [40, 60, '']
        assert rows[0].segment_key == 'female' and rows[0].segment_label == 'Female'
