"""
FastAPI router module for metric breakdowns.

Implements GET /breakdown?start&end&metric&by&platform.

Unknown metric, dimension or platform values fall back to impressions,
gender and all; only the date bounds are strictly validated.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from agency_metrics.core.dependencies import BreakdownEngineDep
from agency_metrics.models import BreakdownResponse


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=BreakdownResponse, response_model_exclude_none=True)
async def get_breakdown(
    engine: BreakdownEngineDep,
    start: Optional[str] = Query(default=None, description="Range start (YYYY-MM-DD, inclusive)"),
    end: Optional[str] = Query(default=None, description="Range end (YYYY-MM-DD, inclusive)"),
    metric: Optional[str] = Query(default=None, description="engagement_rate | impressions | people"),
    by: Optional[str] = Query(default=None, description="gender | age | geo"),
    platform: Optional[str] = Query(default=None, description="instagram | tiktok | facebook | x | all"),
) -> BreakdownResponse:
    """
    Segment a metric over the range. Rows of additive metrics carry ``pct``,
    their share of the total; engagement-rate rows never do.

    Raises:
        HTTPException 400: If start/end are missing or malformed.
    """
    try:
        return await engine.get_breakdown(start, end, metric=metric, by=by, platform=platform)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
