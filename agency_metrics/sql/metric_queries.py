"""
Parameterized SQL for the Postgres-backed metrics source.

Tables:
    metric_daily(metric_key TEXT, platform TEXT, data_date DATE, value NUMERIC)
        One row per metric, platform and day.
    metric_breakdown_daily(metric_key TEXT, dimension TEXT, platform TEXT,
                           segment_key TEXT, segment_label TEXT,
                           data_date DATE, value NUMERIC)
        One row per metric, dimension segment, platform and day.

Aggregation follows metric semantics: the engagement rate is averaged, the
additive counts (impressions, people) are summed. Only the aggregate keyword
is interpolated, and only from the fixed AGGREGATES table; every user-supplied
value travels as an asyncpg positional parameter.

Example usage:
    from agency_metrics.sql import get_daily_series_query

    query = get_daily_series_query(Metric.IMPRESSIONS, platform_filter=True)
    rows = await execute_query(query, "impressions", start, end, "instagram")
"""

from agency_metrics.models.enums import Metric


AGGREGATES = {
    Metric.ENGAGEMENT_RATE: "AVG",
    Metric.IMPRESSIONS: "SUM",
    Metric.PEOPLE: "SUM",
}


def aggregate_for(metric: Metric) -> str:
    return AGGREGATES[metric]


# =============================================================================
# DAILY SERIES QUERY
# =============================================================================

def get_daily_series_query(metric: Metric, platform_filter: bool = False) -> str:
    """
    Generate the query returning one value per day for a metric and range.

    Parameters:
        $1 metric_key, $2 start date, $3 end date, [$4 platform]

    Returns:
        Query yielding (data_date, value) ordered chronologically. Days
        without rows are absent; callers treat them as missing, not zero.
    """
    platform_clause = "AND platform = $4" if platform_filter else ""
    return f"""
    SELECT
        data_date,
        {aggregate_for(metric)}(value)::float8 AS value
    FROM metric_daily
    WHERE metric_key = $1
      AND data_date >= $2
      AND data_date <= $3
      {platform_clause}
    GROUP BY data_date
    ORDER BY data_date ASC
    """


# =============================================================================
# BREAKDOWN QUERY
# =============================================================================

def get_breakdown_query(metric: Metric, platform_filter: bool = False) -> str:
    """
    Generate the query totalling a metric per segment of one dimension.

    Parameters:
        $1 metric_key, $2 dimension, $3 start date, $4 end date, [$5 platform]

    Returns:
        Query yielding (segment_key, segment_label, value). Row order is not
        significant; the breakdown engine applies segment ordering.
    """
    platform_clause = "AND platform = $5" if platform_filter else ""
    return f"""
    SELECT
        segment_key,
        MAX(segment_label) AS segment_label,
        {aggregate_for(metric)}(value)::float8 AS value
    FROM metric_breakdown_daily
    WHERE metric_key = $1
      AND dimension = $2
      AND data_date >= $3
      AND data_date <= $4
      {platform_clause}
    GROUP BY segment_key
    """
