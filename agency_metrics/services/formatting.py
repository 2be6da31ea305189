"""
Numeric rounding and label formatting helpers shared by the engine services.

Python's built-in round() uses banker's rounding; dashboard labels and the
seeded generator round half up (ties toward +infinity), so the helpers here
are used instead wherever a value is rounded for display or generation.
"""

import math
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

COMPACT_SUFFIXES = (
    (1_000_000_000_000, "T"),
    (1_000_000_000, "B"),
    (1_000_000, "M"),
    (1_000, "K"),
)


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, ties toward +infinity.

    >>> round_half_up(2.5), round_half_up(-2.5), round_half_up(141.0)
    (3, -2, 141)
    """
    floor = math.floor(value)
    return int(floor + 1) if value - floor >= 0.5 else int(floor)


def round_to_fixed(value: float, digits: int = 2) -> float:
    """
    Round to a fixed number of decimals using the exact binary value of the
    float and half-up ties, the way fixed-point string formatting does.
    """
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def _trim(number: float) -> str:
    text = f"{number:.1f}"
    return text[:-2] if text.endswith(".0") else text


def format_compact_number(value: float) -> str:
    """
    Format a non-negative magnitude in compact notation with at most one
    fraction digit: 950 -> '950', 1234 -> '1.2K', 999999 -> '1M'.
    """
    magnitude = abs(value)
    for index, (scale, suffix) in enumerate(COMPACT_SUFFIXES):
        if magnitude >= scale:
            scaled = round_to_fixed(magnitude / scale, 1)
            # 999.96K rounds to 1000K; promote to the next unit instead.
            if scaled >= 1000 and index > 0:
                bigger_scale, bigger_suffix = COMPACT_SUFFIXES[index - 1]
                return f"{_trim(round_to_fixed(magnitude / bigger_scale, 1))}{bigger_suffix}"
            return f"{_trim(scaled)}{suffix}"
    rounded = round_to_fixed(magnitude, 1)
    if rounded >= 1000:
        return "1K"
    return _trim(rounded)


def format_one_decimal(value: float) -> str:
    return f"{round_to_fixed(value, 1):.1f}"


def format_iso_instant(moment: Optional[datetime] = None) -> str:
    """
    ISO-8601 UTC timestamp with millisecond precision and a 'Z' suffix,
    e.g. '2024-03-08T12:53:20.000Z'.
    """
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def epoch_millis(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)
