"""
FastAPI router module for anomaly alerts.

Implements:
- GET  /alerts?limit=     newest-first listing of the in-memory alert ledger
- POST /alerts/scan       one anomaly pass over the trailing 7 days
                          (GET accepted too, rate limited per caller)

Limit handling:
- absent or empty: the configured default (20)
- whitespace only or not a number: HTTP 400
- otherwise truncated to an integer and clamped to 1..100
"""

import logging
import math
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request

from agency_metrics.core.dependencies import AlertStoreDep, AnomalyScannerDep, SettingsDep, enforce_rate_limit
from agency_metrics.models import AlertListResponse, ScanResponse


logger = logging.getLogger(__name__)

router = APIRouter()


def parse_limit(raw: Optional[str], default: int, maximum: int) -> int:
    """
    Resolve the ``limit`` query value.

    Raises:
        ValueError: If the value is blank or not numeric.
    """
    if raw is None or raw == "":
        return default
    if not raw.strip():
        raise ValueError("limit must not be empty")
    try:
        value = float(raw)
    except ValueError:
        raise ValueError("limit must be a number")
    if math.isnan(value):
        raise ValueError("limit must be a number")
    return int(min(max(value, 1), maximum))


@router.get("", response_model=AlertListResponse)
async def list_alerts(
    store: AlertStoreDep,
    settings: SettingsDep,
    limit: Optional[str] = Query(default=None, description="Maximum alerts to return (1-100)"),
) -> AlertListResponse:
    """
    List the most recent alerts, newest first. Does not modify the ledger.

    Raises:
        HTTPException 400: If limit is blank or not a number.
    """
    try:
        resolved = parse_limit(limit, settings.alert_list_default_limit, settings.alert_list_max_limit)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return AlertListResponse(alerts=store.list_alerts(resolved))


@router.api_route(
    "/scan",
    methods=["POST", "GET"],
    response_model=ScanResponse,
    dependencies=[Depends(enforce_rate_limit("alerts-scan", "scan_rate_limit_max"))],
)
async def scan_alerts(
    request: Request,
    scanner: AnomalyScannerDep,
    background_tasks: BackgroundTasks,
) -> ScanResponse:
    """
    Run one anomaly scan over the trailing window and record raised alerts.

    Newly raised alerts are announced on Slack in the background when a
    webhook is configured.

    Raises:
        HTTPException 429: If the caller exceeded the scan rate limit.
    """
    now = scanner.clock()
    window = scanner.scan_window(now)
    raised = await scanner.scan(now)

    digest = getattr(request.app.state, "alert_digest", None)
    if raised and digest is not None:
        background_tasks.add_task(digest.send, raised)

    return ScanResponse(ok=True, range=window, raised=raised)
