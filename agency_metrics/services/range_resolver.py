"""
Date range resolution service.

Converts named presets or explicit bounds into concrete ranges and derives the
symmetric "previous comparable period" used for trend comparison.

Rules:
    - Presets end on the anchor day (UTC today by default) and reach back
      6, 29 or 89 days, so last_7_days covers 7 days including the anchor.
    - normalize_range never raises: a missing or malformed `to` falls back
      to today, a missing `from` to the last_7_days start ending on `to`.
    - previous_range(r) has exactly r's duration and ends the day before
      r.start. Holds for single-day ranges and multi-month ranges alike.

Usage:
    from agency_metrics.services.range_resolver import (
        build_range_from_preset,
        normalize_range,
        previous_range,
    )

    query = build_range_from_preset("last_30_days")
    current = query.to_range()
    prior = previous_range(current)
"""

import re
from datetime import date, datetime, timedelta, timezone
from typing import Iterator, Optional, Union

from agency_metrics.models import DateRange, RangePreset, RangeQuery


ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DEFAULT_PRESET = RangePreset.LAST_7_DAYS


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _anchor_date(anchor: Optional[Union[date, datetime]]) -> date:
    if anchor is None:
        return utc_today()
    if isinstance(anchor, datetime):
        if anchor.tzinfo is not None:
            anchor = anchor.astimezone(timezone.utc)
        return anchor.date()
    return anchor


def is_iso_date(value: Optional[str]) -> bool:
    """
    True when value is a YYYY-MM-DD string naming a real calendar day.
    """
    if not value or not ISO_DATE_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def parse_preset(preset: Union[RangePreset, str, None]) -> RangePreset:
    """
    Resolve a preset name, falling back to last_7_days for anything unknown.
    """
    if isinstance(preset, RangePreset):
        return preset
    try:
        return RangePreset((preset or "").strip().lower())
    except ValueError:
        return DEFAULT_PRESET


def build_range_from_preset(
    preset: Union[RangePreset, str],
    anchor: Optional[Union[date, datetime]] = None,
) -> RangeQuery:
    """
    Build the range for a named preset ending on the anchor day.

    Args:
        preset: last_7_days, last_30_days or last_90_days.
        anchor: Day (or instant, taken in UTC) the range ends on. Defaults
            to today in UTC.

    Returns:
        RangeQuery with ISO `from`/`to` strings.

    Example:
        >>> build_range_from_preset("last_7_days", date(2024, 3, 8))
        RangeQuery(from_='2024-03-02', to='2024-03-08', preset=<RangePreset.LAST_7_DAYS: 'last_7_days'>)
    """
    resolved = parse_preset(preset)
    end = _anchor_date(anchor)
    start = end - timedelta(days=resolved.lookback_days)
    return RangeQuery(from_=start.isoformat(), to=end.isoformat(), preset=resolved)


def normalize_range(
    from_: Optional[str] = None,
    to: Optional[str] = None,
    today: Optional[date] = None,
) -> RangeQuery:
    """
    Normalize loosely-typed range bounds coming from a query string.

    Invalid or missing inputs never raise. A missing `to` becomes today and a
    missing `from` becomes the last_7_days start anchored on the resolved
    `to`. A defaulted bound never lands on the wrong side of a given one: when
    only `from` is given and it is after today, `to` becomes the end of the
    7-day window starting at `from`.

    Two explicit bounds are not reordered: a caller passing from > to gets
    them back as given, and DateRange construction is where that gets
    rejected.

    >>> normalize_range(None, "2024-03-08", today=date(2026, 10, 19))
    RangeQuery(from_='2024-03-02', to='2024-03-08', preset=None)
    """
    has_from = is_iso_date(from_)
    has_to = is_iso_date(to)
    window = timedelta(days=DEFAULT_PRESET.lookback_days)

    end = date.fromisoformat(to) if has_to else (today or utc_today())
    start = date.fromisoformat(from_) if has_from else end - window
    if has_from and not has_to and start > end:
        end = start + window
    return RangeQuery(from_=start.isoformat(), to=end.isoformat())


def parse_range(start: Optional[str], end: Optional[str]) -> DateRange:
    """
    Strictly parse explicit bounds where silently substituting defaults is unsafe.

    Raises:
        ValueError: If either bound is missing, not an ISO date, or start > end.
    """
    if not start or not end:
        raise ValueError("start/end required")
    if not is_iso_date(start) or not is_iso_date(end):
        raise ValueError("start/end must be YYYY-MM-DD dates")
    first, last = date.fromisoformat(start), date.fromisoformat(end)
    if first > last:
        raise ValueError("start must not be after end")
    return DateRange(start=first, end=last)


def days_between(start: date, end: date) -> int:
    """Whole days from start to end (0 for the same day, negative if reversed)."""
    return (end - start).days


def previous_range(current: DateRange) -> DateRange:
    """
    Compute the comparable period immediately preceding `current`.

    Example:
        >>> previous_range(DateRange(start=date(2024, 3, 8), end=date(2024, 3, 8)))
        DateRange(start=datetime.date(2024, 3, 7), end=datetime.date(2024, 3, 7))
    """
    duration_days = days_between(current.start, current.end) + 1
    prev_end = current.start - timedelta(days=1)
    prev_start = prev_end - timedelta(days=duration_days - 1)
    return DateRange(start=prev_start, end=prev_end)


def iter_days(current: DateRange) -> Iterator[date]:
    """Yield every day of the range in chronological order."""
    day = current.start
    while day <= current.end:
        yield day
        day += timedelta(days=1)
