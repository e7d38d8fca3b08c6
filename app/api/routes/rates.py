"""Reimbursement, combined-rate and analytics JSON endpoints.

- GET  /api/reimbursement, /api/reimbursement/{group}
- GET  /api/combined-rates, /api/combined-rates/code/{code}, /api/combined-rates/group/{group}
       (also served as /api/combined-rates/directory/{group})
- GET  /api/data/code/{code}, /api/data/directory/{group}
- GET  /api/data/history/{code}, /api/data/trends
- GET  /api/hcpcs-data, /api/hcpcs-data/{group}
- POST /api/calculate

Every data endpoint accepts ``?refresh=true`` to bypass the snapshot cache.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.dependencies import get_rate_service
from app.api.schemas import CalculateRequest, CalculateResponse
from app.common.exceptions import RateComputationError
from app.rates.analytics import code_history, code_slice, group_slice, group_trends, hcpcs_rows
from app.rates.calculator import calculate_rate
from app.rates.service import CombinedSnapshot, RateService
from app.rates.series import ReimbursementSeries
from observability.logging_config import get_logger

router = APIRouter()
logger = get_logger("rates_api")
_rate_service_dep = Depends(get_rate_service)
_refresh_query = Query(False, description="Recompute instead of serving the cached snapshot")


async def _reimbursement(service: RateService, refresh: bool) -> ReimbursementSeries:
    try:
        return await service.reimbursement(force_refresh=refresh)
    except RateComputationError as e:
        logger.error(f"Reimbursement computation failed: {e}", extra={"stage": e.stage})
        raise HTTPException(status_code=500, detail=f"Failed to calculate reimbursements: {e}") from e


async def _combined(service: RateService, refresh: bool) -> CombinedSnapshot:
    try:
        return await service.combined(force_refresh=refresh)
    except RateComputationError as e:
        logger.error(f"Combined computation failed: {e}", extra={"stage": e.stage})
        raise HTTPException(status_code=500, detail=f"Failed to calculate combined rates: {e}") from e


@router.get("/api/reimbursement")
async def get_reimbursement(
    refresh: bool = _refresh_query,
    service: RateService = _rate_service_dep,
) -> dict[str, Any]:
    series = await _reimbursement(service, refresh)
    return series.to_dict()


@router.get("/api/reimbursement/{group}")
async def get_group_reimbursement(
    group: str,
    refresh: bool = _refresh_query,
    service: RateService = _rate_service_dep,
) -> dict[str, Any]:
    series = await _reimbursement(service, refresh)
    group_series = series.get(group)
    if group_series is None:
        raise HTTPException(status_code=404, detail=f"Group {group} not found")
    return group_series.to_dict()


@router.get("/api/combined-rates")
async def get_combined_rates(
    refresh: bool = _refresh_query,
    service: RateService = _rate_service_dep,
) -> dict[str, Any]:
    snapshot = await _combined(service, refresh)
    return snapshot.combined.to_dict()


@router.get("/api/combined-rates/code/{code}")
async def get_combined_rates_for_code(
    code: str,
    refresh: bool = _refresh_query,
    service: RateService = _rate_service_dep,
) -> dict[str, Any]:
    snapshot = await _combined(service, refresh)
    view = snapshot.combined.code_view(code)
    if view is None:
        raise HTTPException(status_code=404, detail=f"Code {code} not found")
    return view


@router.get("/api/combined-rates/group/{group}")
@router.get("/api/combined-rates/directory/{group}")
async def get_combined_rates_for_group(
    group: str,
    refresh: bool = _refresh_query,
    service: RateService = _rate_service_dep,
) -> dict[str, Any]:
    snapshot = await _combined(service, refresh)
    view = snapshot.combined.group_view(group)
    if view is None:
        raise HTTPException(status_code=404, detail=f"Group {group} not found")
    return view


@router.get("/api/data/code/{code}")
async def get_code_data(
    code: str,
    refresh: bool = _refresh_query,
    service: RateService = _rate_service_dep,
) -> dict[str, Any]:
    snapshot = await _combined(service, refresh)
    data = code_slice(snapshot.reimbursement, snapshot.payments, snapshot.combined, code)
    if data is None:
        raise HTTPException(status_code=404, detail=f"Code {code} not found")
    return data


@router.get("/api/data/directory/{group}")
async def get_group_data(
    group: str,
    refresh: bool = _refresh_query,
    service: RateService = _rate_service_dep,
) -> dict[str, Any]:
    snapshot = await _combined(service, refresh)
    data = group_slice(snapshot.reimbursement, snapshot.combined, group)
    if data is None:
        raise HTTPException(status_code=404, detail=f"Group {group} not found")
    return data


@router.get("/api/data/history/{code}")
async def get_code_history(
    code: str,
    refresh: bool = _refresh_query,
    service: RateService = _rate_service_dep,
) -> dict[str, Any]:
    snapshot = await _combined(service, refresh)
    history = code_history(snapshot.reimbursement, snapshot.payments, snapshot.combined, code)
    if history is None:
        raise HTTPException(status_code=404, detail=f"Code {code} not found")
    return history


@router.get("/api/data/trends")
async def get_trends(
    refresh: bool = _refresh_query,
    service: RateService = _rate_service_dep,
) -> dict[str, Any]:
    series = await _reimbursement(service, refresh)
    return group_trends(series)


@router.get("/api/hcpcs-data")
async def get_hcpcs_data(
    refresh: bool = _refresh_query,
    service: RateService = _rate_service_dep,
) -> dict[str, Any]:
    series = await _reimbursement(service, refresh)
    return hcpcs_rows(series) or {}


@router.get("/api/hcpcs-data/{group}")
async def get_group_hcpcs_data(
    group: str,
    refresh: bool = _refresh_query,
    service: RateService = _rate_service_dep,
) -> dict[str, Any]:
    series = await _reimbursement(service, refresh)
    rows = hcpcs_rows(series, group)
    if rows is None:
        raise HTTPException(status_code=404, detail=f"Group {group} not found")
    return rows


@router.post("/api/calculate", response_model=CalculateResponse)
async def calculate(body: CalculateRequest) -> CalculateResponse:
    rate = calculate_rate(
        body.work_rvu,
        body.pe_rvu,
        body.mp_rvu,
        body.conversion_factor,
        work_gpci=body.work_gpci,
        pe_gpci=body.pe_gpci,
        mp_gpci=body.mp_gpci,
    )
    return CalculateResponse(inputs=body, reimbursement=rate, result=rate)
