"""
SQL Query Module for the Agency Metrics backend.

Provides parameterized SQL for the Postgres-backed metrics source
(metric_queries). Follows the Repository Pattern: services build no SQL
themselves and import query generators from here.

Example usage:
    from agency_metrics.sql import get_daily_series_query, get_breakdown_query
"""

from agency_metrics.sql.metric_queries import (
    AGGREGATES,
    aggregate_for,
    get_breakdown_query,
    get_daily_series_query,
)


__all__ = [
    'AGGREGATES',
    'aggregate_for',
    'get_breakdown_query',
    'get_daily_series_query',
]
