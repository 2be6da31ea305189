"""
Segment catalogs for breakdown dimensions.

Declaration order is significant: gender and age breakdowns are returned in
this order, geo breakdowns are re-sorted by value.
"""

from typing import Dict, List, Tuple

from agency_metrics.models.enums import BreakdownDimension

# (key, label)
GENDER_SEGMENTS: List[Tuple[str, str]] = [
    ("female", "Female"),
    ("male", "Male"),
    ("other", "Other"),
]

AGE_BRACKETS: List[str] = ["13-17", "18-24", "25-34", "35-44", "45-54", "55-64", "65+"]

COUNTRY_CODES: List[str] = ["US", "MA", "FR", "ES", "DE", "GB", "IT", "CA", "AE", "SA"]


def segments_for(by: BreakdownDimension) -> List[Tuple[str, str]]:
    if by is BreakdownDimension.GENDER:
        return list(GENDER_SEGMENTS)
    if by is BreakdownDimension.AGE:
        return [(bracket, bracket) for bracket in AGE_BRACKETS]
    return [(code, code) for code in COUNTRY_CODES]


def declared_order(by: BreakdownDimension) -> Dict[str, int]:
    return {key: index for index, (key, _) in enumerate(segments_for(by))}
