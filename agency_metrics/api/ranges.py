"""
FastAPI router module for date range resolution.

Implements GET /ranges?preset= or GET /ranges?from=&to=.

A preset takes precedence over explicit bounds; an unknown preset name falls
back to last_7_days. Without a preset, missing or malformed bounds fall back
to defaults (see normalize_range) and only two explicit, reversed bounds are
rejected. The response also carries the previous period of equal length used
for comparisons.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from agency_metrics.models import RangeResolution
from agency_metrics.services.range_resolver import (
    build_range_from_preset,
    normalize_range,
    parse_range,
    previous_range,
)


router = APIRouter()


@router.get("", response_model=RangeResolution)
async def resolve_range(
    preset: Optional[str] = Query(default=None, description="last_7_days | last_30_days | last_90_days"),
    from_: Optional[str] = Query(default=None, alias="from", description="Range start (YYYY-MM-DD)"),
    to: Optional[str] = Query(default=None, description="Range end (YYYY-MM-DD)"),
) -> RangeResolution:
    """
    Raises:
        HTTPException 400: If explicit from/to are valid dates but reversed.
    """
    if preset:
        query = build_range_from_preset(preset)
    else:
        query = normalize_range(from_, to)

    try:
        current = parse_range(query.from_, query.to)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return RangeResolution(
        range=current,
        previousRange=previous_range(current),
        durationDays=current.duration_days,
        preset=query.preset,
    )
