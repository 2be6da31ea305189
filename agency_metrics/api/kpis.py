"""
FastAPI router module for KPI series.

Implements GET /kpis (current series, optionally with the previous period)
and GET /kpis/summary (current vs previous period deltas per metric).

Both endpoints require explicit ``start`` and ``end`` ISO dates; a missing or
malformed bound is a caller error answered with HTTP 400.

Response shapes:
- /kpis: { range, current: {engagementRate, impressions, people},
           previousRange?, previous? }
- /kpis/summary: { range, previousRange, deltas: [...] }
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from agency_metrics.core.dependencies import KpiAggregatorDep
from agency_metrics.models import KpisResponse, KpiSummaryResponse, Platform
from agency_metrics.services.breakdown import parse_platform
from agency_metrics.services.period_comparator import compare_bundles
from agency_metrics.services.range_resolver import parse_range


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=KpisResponse, response_model_exclude_none=True)
async def get_kpis(
    aggregator: KpiAggregatorDep,
    start: Optional[str] = Query(default=None, description="Range start (YYYY-MM-DD, inclusive)"),
    end: Optional[str] = Query(default=None, description="Range end (YYYY-MM-DD, inclusive)"),
    compare: Optional[str] = Query(default=None, description="'1' to include the previous period"),
    platform: Optional[str] = Query(default=None, description="Platform filter, default all"),
) -> KpisResponse:
    """
    Return the three KPI series for the range.

    With ``compare=1`` the response also carries the series for the
    immediately preceding period of equal length.

    Raises:
        HTTPException 400: If start/end are missing or malformed.
    """
    try:
        current = parse_range(start, end)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return await aggregator.get_kpis_with_comparison(
        current,
        compare=compare == "1",
        platform=parse_platform(platform),
    )


@router.get("/summary", response_model=KpiSummaryResponse)
async def get_kpi_summary(
    aggregator: KpiAggregatorDep,
    start: Optional[str] = Query(default=None, description="Range start (YYYY-MM-DD, inclusive)"),
    end: Optional[str] = Query(default=None, description="Range end (YYYY-MM-DD, inclusive)"),
    platform: Optional[str] = Query(default=None, description="Platform filter, default all"),
) -> KpiSummaryResponse:
    """
    Compare the range against its previous period: averages for engagement
    rate, sums for impressions and people reached.
    """
    try:
        current = parse_range(start, end)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    resolved_platform: Platform = parse_platform(platform)
    response = await aggregator.get_kpis_with_comparison(current, compare=True, platform=resolved_platform)
    deltas = compare_bundles(response.current, response.previous)

    return KpiSummaryResponse(
        range=response.range,
        previousRange=response.previousRange,
        deltas=deltas,
    )
