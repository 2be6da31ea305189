"""
Anomaly scanning service.

Inspects the most recent point of each tracked metric over the trailing
7-day window (today inclusive) against the average of the window's earlier
points, and raises an alert when the relative deviation is significant.

Algorithm:
    latest     = value of the last point
    historical = every earlier point of the same series
    avg        = mean(historical), or 0 when there are none
    change     = (latest - avg) / max(avg, 1)

    |change| >= 0.4  -> alert, severity 'med'
    |change| >= 0.6  -> alert, severity 'high'

The substitution of 1 happens only in the denominator; the numerator always
uses the real average. Each metric is evaluated against its own history,
never across metrics. An empty series is skipped without error.

The window is fixed to the trailing days ending today regardless of the range
a dashboard user has selected.

Usage:
    scanner = AnomalyScanner(aggregator, alert_store)
    raised = await scanner.scan()
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from agency_metrics.models import Alert, AlertSeverity, DateRange, KpiBundle, KpiPoint, Metric, RangePreset
from agency_metrics.services.alert_store import AlertStore
from agency_metrics.services.formatting import epoch_millis, format_iso_instant, round_half_up
from agency_metrics.services.kpi_aggregator import KpiAggregator
from agency_metrics.services.range_resolver import build_range_from_preset


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Relative deviation at which an alert is raised.
ANOMALY_THRESHOLD: float = 0.4

# Relative deviation at which the alert is classified 'high'.
HIGH_SEVERITY_THRESHOLD: float = 0.6

# Metrics scanned on every pass, with the display name used in alert titles.
TRACKED_METRICS: Tuple[Tuple[str, Metric], ...] = (
    ("Impressions", Metric.IMPRESSIONS),
    ("People", Metric.PEOPLE),
    ("Engagement rate", Metric.ENGAGEMENT_RATE),
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Pure helpers
# =============================================================================


def historical_average(series: Sequence[KpiPoint]) -> float:
    """Mean of every point but the last; 0 when there is at most one point."""
    historical = series[:-1]
    if len(historical) == 0:
        return 0.0
    return float(np.mean([point.value for point in historical]))


def pct_change(latest: float, avg: float) -> float:
    """Relative change of `latest` against `avg`, dividing by at least 1."""
    return (latest - avg) / max(avg, 1.0)


def classify_change(
    change: float,
    threshold: float = ANOMALY_THRESHOLD,
    high_threshold: float = HIGH_SEVERITY_THRESHOLD,
) -> Optional[AlertSeverity]:
    """
    Map a relative change to a severity, or None when below the threshold.

    >>> classify_change(1.41), classify_change(-0.42), classify_change(0.39)
    (<AlertSeverity.HIGH: 'high'>, <AlertSeverity.MED: 'med'>, None)
    """
    magnitude = abs(change)
    if magnitude < threshold:
        return None
    return AlertSeverity.HIGH if magnitude >= high_threshold else AlertSeverity.MED


def format_alert_title(metric_name: str, change: float, window_days: int = 7) -> str:
    """
    '{name}: {+}{round(change * 100)}% vs 7d avg'. Negative changes carry
    their own minus sign; zero has no sign.
    """
    sign = "+" if change > 0 else ""
    return f"{metric_name}: {sign}{round_half_up(change * 100)}% vs {window_days}d avg"


def evaluate_series(
    metric_name: str,
    series: Sequence[KpiPoint],
    now: datetime,
    threshold: float = ANOMALY_THRESHOLD,
    high_threshold: float = HIGH_SEVERITY_THRESHOLD,
    window_days: int = 7,
) -> Optional[Alert]:
    """
    Evaluate one metric's series and build the alert it warrants, if any.

    Returns:
        Alert, or None for an empty series or a deviation below threshold.
    """
    if len(series) == 0:
        return None

    latest = float(series[-1].value)
    avg = historical_average(series)
    change = pct_change(latest, avg)
    severity = classify_change(change, threshold, high_threshold)
    if severity is None:
        return None

    return Alert(
        id=f"{metric_name}-{epoch_millis(now)}",
        title=format_alert_title(metric_name, change, window_days),
        severity=severity,
        createdAt=format_iso_instant(now),
    )


# =============================================================================
# Scanner
# =============================================================================


class AnomalyScanner:
    """
    Runs one anomaly pass over the tracked metrics and records raised alerts.

    Args:
        aggregator: Supplies the trailing-window KPI series.
        store: Ledger the raised alerts are written to.
        threshold: Relative deviation that raises an alert.
        high_threshold: Relative deviation classified as 'high'.
        window_days: Length of the trailing window, today inclusive.
        clock: Returns the current instant (UTC); injectable for tests.
    """

    def __init__(
        self,
        aggregator: KpiAggregator,
        store: AlertStore,
        threshold: float = ANOMALY_THRESHOLD,
        high_threshold: float = HIGH_SEVERITY_THRESHOLD,
        window_days: int = 7,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.aggregator = aggregator
        self.store = store
        self.threshold = threshold
        self.high_threshold = high_threshold
        self.window_days = window_days
        self.clock = clock

    def scan_window(self, now: Optional[datetime] = None) -> DateRange:
        """Trailing window ending on the UTC day of `now`."""
        now = now or self.clock()
        window = build_range_from_preset(RangePreset.LAST_7_DAYS, now).to_range()
        if self.window_days != 7:
            window = DateRange(start=window.end - timedelta(days=self.window_days - 1), end=window.end)
        return window

    def evaluate_bundle(self, bundle: KpiBundle, now: datetime) -> List[Alert]:
        raised: List[Alert] = []
        for metric_name, metric in TRACKED_METRICS:
            alert = evaluate_series(
                metric_name,
                bundle.series_for(metric),
                now,
                threshold=self.threshold,
                high_threshold=self.high_threshold,
                window_days=self.window_days,
            )
            if alert is not None:
                raised.append(alert)
        return raised

    async def scan(self, now: Optional[datetime] = None) -> List[Alert]:
        """
        ScanAndRaiseAlerts: fetch the trailing window, evaluate every tracked
        metric independently and record each raised alert.

        Args:
            now: Instant the scan runs at; the scanner clock by default.

        Returns:
            The alerts raised by this pass, in scan order.
        """
        now = now or self.clock()
        window = self.scan_window(now)
        bundle = await self.aggregator.get_kpis(window)

        raised = self.evaluate_bundle(bundle, now)
        for alert in raised:
            self.store.add_alert(alert)
            logger.info("Raised %s alert %s: %s", alert.severity.value, alert.id, alert.title)

        if not raised:
            logger.debug("Anomaly scan %s..%s raised no alerts", window.start, window.end)
        return raised
