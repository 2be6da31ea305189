'''
Agency Metrics Test Suite

Test Modules:
-------------
- test_range_resolver.py: presets, normalization, strict parsing, previous period
- test_seeded_sampler.py: FNV-1a vectors, stream reproducibility, rounding helpers
- test_metrics_source.py: source selection, Postgres row mapping, seeded breakdowns
- test_kpi_aggregator.py: per-day series, comparison bundles, export row alignment
- test_breakdown.py: ordering, shares, fallbacks, determinism
- test_period_comparator.py: averages vs sums, delta labels
- test_anomaly_scanner.py: thresholds, severities, titles, independence
- test_alert_store.py: capacity bound, newest-first listing
- test_rate_limiter.py: fixed windows, retryAfter, per-key isolation
- test_alert_digest.py: Slack digest idempotency and error capture
- test_api.py: HTTP contracts, 400/429 mapping

Running Tests:
--------------
    pip install -e ".[test]"
    pytest -v

See conftest.py for shared fixtures.
'''

__all__ = []
