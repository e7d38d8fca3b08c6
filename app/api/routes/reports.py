"""HTML report endpoints.

Rendering runs in the app's CPU executor. Failures are returned as plain text.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

from app.api.dependencies import get_rate_service
from app.common.exceptions import RateComputationError
from app.infra.executors import run_cpu
from app.rates.service import RateService
from app.reporting.engine import render_combined_report, render_reimbursement_report
from observability.logging_config import get_logger

router = APIRouter()
logger = get_logger("reports_api")
_rate_service_dep = Depends(get_rate_service)
_refresh_query = Query(False, description="Recompute instead of serving the cached snapshot")


def _failure(what: str, exc: Exception) -> PlainTextResponse:
    logger.error(f"Error generating {what}: {exc}")
    return PlainTextResponse(f"Error generating {what}: {exc}", status_code=500)


@router.get("/reimbursement-report", response_class=HTMLResponse)
async def reimbursement_report(
    request: Request,
    refresh: bool = _refresh_query,
    service: RateService = _rate_service_dep,
) -> Response:
    try:
        series = await service.reimbursement(force_refresh=refresh)
    except RateComputationError as e:
        return _failure("reimbursement report", e)
    return HTMLResponse(await run_cpu(request.app, render_reimbursement_report, series))


@router.get("/reimbursement-report/{group}", response_class=HTMLResponse)
async def group_reimbursement_report(
    request: Request,
    group: str,
    refresh: bool = _refresh_query,
    service: RateService = _rate_service_dep,
) -> Response:
    try:
        series = await service.reimbursement(force_refresh=refresh)
    except RateComputationError as e:
        return _failure("reimbursement report", e)
    if series.get(group) is None:
        return PlainTextResponse(f"Group {group} not found", status_code=404)
    return HTMLResponse(await run_cpu(request.app, render_reimbursement_report, series, group))


@router.get("/combined-report", response_class=HTMLResponse)
async def combined_report(
    request: Request,
    refresh: bool = _refresh_query,
    service: RateService = _rate_service_dep,
) -> Response:
    try:
        snapshot = await service.combined(force_refresh=refresh)
    except RateComputationError as e:
        return _failure("combined report", e)
    return HTMLResponse(await run_cpu(request.app, render_combined_report, snapshot.combined))


@router.get("/combined-report/code/{code}", response_class=HTMLResponse)
async def code_combined_report(
    request: Request,
    code: str,
    refresh: bool = _refresh_query,
    service: RateService = _rate_service_dep,
) -> Response:
    try:
        snapshot = await service.combined(force_refresh=refresh)
    except RateComputationError as e:
        return _failure("combined report", e)
    if code not in snapshot.combined.by_code:
        return PlainTextResponse(f"Code {code} not found", status_code=404)
    html = await run_cpu(request.app, render_combined_report, snapshot.combined, code=code)
    return HTMLResponse(html)


@router.get("/combined-report/group/{group}", response_class=HTMLResponse)
@router.get("/combined-report/directory/{group}", response_class=HTMLResponse)
async def group_combined_report(
    request: Request,
    group: str,
    refresh: bool = _refresh_query,
    service: RateService = _rate_service_dep,
) -> Response:
    try:
        snapshot = await service.combined(force_refresh=refresh)
    except RateComputationError as e:
        return _failure("combined report", e)
    if group not in snapshot.combined.by_group:
        return PlainTextResponse(f"Group {group} not found", status_code=404)
    html = await run_cpu(request.app, render_combined_report, snapshot.combined, group=group)
    return HTMLResponse(html)
