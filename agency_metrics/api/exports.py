"""
FastAPI router module for tabular export rows.

Document formatting (CSV, XLSX, PDF) is done by downstream exporters; these
endpoints hand them the rows to format.

Implements:
- GET /export/rows?start&end
    one row per date: {date, engagement_rate, impressions, people}, a metric
    missing for a date is an empty string
- GET /export/breakdown?start&end&metric&by&platform
    one row per segment: {segment_key, segment_label, value, pct}, pct in
    whole percent or an empty string

Both are rate limited per caller (action keys 'export-rows' and
'export-breakdown').
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from agency_metrics.core.dependencies import BreakdownEngineDep, KpiAggregatorDep, enforce_rate_limit
from agency_metrics.models import BreakdownDimension, BreakdownExportRow, Metric, MetricRowsResponse
from agency_metrics.services.breakdown import to_export_rows


logger = logging.getLogger(__name__)


# =============================================================================
# Local Pydantic Models for API Responses
# =============================================================================

class BreakdownExportResponse(BaseModel):
    """Response model for the breakdown export endpoint."""
    filename: str = Field(..., description="Suggested download file name")
    rows: List[BreakdownExportRow] = Field(default_factory=list)


router = APIRouter()


@router.get(
    "/rows",
    response_model=MetricRowsResponse,
    dependencies=[Depends(enforce_rate_limit("export-rows", "export_rate_limit_max"))],
)
async def export_metric_rows(
    aggregator: KpiAggregatorDep,
    start: Optional[str] = Query(default=None, description="Range start (YYYY-MM-DD, inclusive)"),
    end: Optional[str] = Query(default=None, description="Range end (YYYY-MM-DD, inclusive)"),
) -> MetricRowsResponse:
    """
    BuildMetricRows: per-date rows aligning the three KPI series.

    Raises:
        HTTPException 400: If start/end are missing or malformed.
        HTTPException 429: If the caller exceeded the export rate limit.
    """
    try:
        rows = await aggregator.build_metric_rows(start, end)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return MetricRowsResponse(start=start, end=end, rows=rows)


@router.get(
    "/breakdown",
    response_model=BreakdownExportResponse,
    dependencies=[Depends(enforce_rate_limit("export-breakdown", "export_rate_limit_max"))],
)
async def export_breakdown_rows(
    engine: BreakdownEngineDep,
    start: Optional[str] = Query(default=None, description="Range start (YYYY-MM-DD, inclusive)"),
    end: Optional[str] = Query(default=None, description="Range end (YYYY-MM-DD, inclusive)"),
    metric: Optional[str] = Query(default=None),
    by: Optional[str] = Query(default=None),
    platform: Optional[str] = Query(default=None),
) -> BreakdownExportResponse:
    """
    Breakdown rows flattened for exporters.

    Raises:
        HTTPException 400: If start/end are missing or malformed.
        HTTPException 429: If the caller exceeded the export rate limit.
    """
    try:
        response = await engine.get_breakdown(start, end, metric=metric, by=by, platform=platform)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    resolved_by: BreakdownDimension = response.by
    resolved_metric: Metric = response.metric
    return BreakdownExportResponse(
        filename=f"breakdown_{resolved_by.value}_{resolved_metric.value}_{start}_{end}",
        rows=to_export_rows(response),
    )
