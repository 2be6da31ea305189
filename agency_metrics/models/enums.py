"""
Enumeration definitions for the Agency Metrics backend.

All enums inherit from both `str` and `Enum` to ensure JSON serialization
compatibility with Pydantic models, enabling automatic serialization and
deserialization in API responses.
"""

from enum import Enum


class Metric(str, Enum):
    """
    Tracked dashboard metrics.

    - engagement_rate: Rate metric, expressed in percent (compare averages)
    - impressions: Additive count (compare sums)
    - people: People reached, additive count (compare sums)
    """
    ENGAGEMENT_RATE = "engagement_rate"
    IMPRESSIONS = "impressions"
    PEOPLE = "people"

    @property
    def is_rate(self) -> bool:
        return self is Metric.ENGAGEMENT_RATE


class BreakdownDimension(str, Enum):
    """
    Categorical dimensions a metric can be segmented by.
    """
    GENDER = "gender"
    AGE = "age"
    GEO = "geo"


class Platform(str, Enum):
    """
    Social platforms a breakdown can be filtered to. ALL disables the filter.
    """
    INSTAGRAM = "instagram"
    TIKTOK = "tiktok"
    FACEBOOK = "facebook"
    X = "x"
    ALL = "all"


class RangePreset(str, Enum):
    """
    Named date-range presets offered by the dashboard toolbar.

    The value is the preset name; `lookback_days` is how many days the
    range start sits before its (inclusive) end.
    """
    LAST_7_DAYS = "last_7_days"
    LAST_30_DAYS = "last_30_days"
    LAST_90_DAYS = "last_90_days"

    @property
    def lookback_days(self) -> int:
        return {
            RangePreset.LAST_7_DAYS: 6,
            RangePreset.LAST_30_DAYS: 29,
            RangePreset.LAST_90_DAYS: 89,
        }[self]


class AlertSeverity(str, Enum):
    """
    Severity tiers for anomaly alerts.

    - high: |change| at or above the high threshold (default 0.6)
    - med: |change| at or above the alert threshold (default 0.4)
    """
    HIGH = "high"
    MED = "med"


class MetricsSourceKind(str, Enum):
    """
    Selectable MetricsSource implementations.

    - seeded: Deterministic synthetic data (development, demos, tests)
    - postgres: Real daily metrics read through asyncpg
    """
    SEEDED = "seeded"
    POSTGRES = "postgres"
