"""Market and regulatory data endpoints (CMS claims, openFDA, ClinicalTrials.gov)."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from app.api.dependencies import get_cms_client, get_fda_client, get_market_settings, get_trials_client
from app.api.schemas import MarketValuesResponse, TrialsRequest
from app.common.exceptions import MarketDataError
from app.market.cms_claims import CmsClaimsClient
from app.market.fda import FdaClient
from app.market.trials import TrialsClient, is_recruiting
from config.settings import MarketSettings
from observability.logging_config import get_logger
from observability.timing import timed

router = APIRouter()
logger = get_logger("market_api")
_cms_dep = Depends(get_cms_client)
_fda_dep = Depends(get_fda_client)
_trials_dep = Depends(get_trials_client)
_market_settings_dep = Depends(get_market_settings)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _upstream_error(e: MarketDataError) -> HTTPException:
    logger.error(f"Upstream market data error: {e}", extra={"source": e.source, "status_code": e.status_code})
    return HTTPException(status_code=502, detail=f"Upstream {e.source or 'market'} API error: {e}")


@router.get("/market-values", response_model=MarketValuesResponse)
async def market_values(
    cms: CmsClaimsClient = _cms_dep,
    settings: MarketSettings = _market_settings_dep,
) -> MarketValuesResponse:
    try:
        with timed("market.cms_ms"):
            analysis = await cms.market_values()
    except MarketDataError as e:
        raise _upstream_error(e) from e
    return MarketValuesResponse(data=analysis, year=settings.cms_data_year, timestamp=_now())


@router.get("/market-values/{code}", response_model=MarketValuesResponse)
async def market_values_for_code(
    code: str,
    cms: CmsClaimsClient = _cms_dep,
    settings: MarketSettings = _market_settings_dep,
) -> MarketValuesResponse:
    try:
        with timed("market.cms_ms", {"scope": "code"}):
            analysis = await cms.market_values((code,))
    except MarketDataError as e:
        raise _upstream_error(e) from e
    if not analysis:
        raise HTTPException(status_code=404, detail=f"No service data found for HCPCS code: {code}")
    return MarketValuesResponse(
        data=analysis, year=settings.cms_data_year, hcpcs_code=code, timestamp=_now()
    )


@router.get("/api/fda-data")
async def fda_data(fda: FdaClient = _fda_dep) -> dict[str, Any]:
    started = time.perf_counter()
    with timed("market.fda_ms"):
        data = await fda.fetch_all()
    duration = time.perf_counter() - started
    logger.info(f"Completed FDA fetch for {len(data)} competitors in {duration:.2f}s")
    return {"status": "success", "data": data, "timestamp": _now(), "duration": f"{duration:.2f}s"}


@router.post("/fetch-trials")
async def fetch_trials(body: TrialsRequest, trials: TrialsClient = _trials_dep) -> list[dict[str, Any]]:
    with timed("market.trials_ms"):
        studies = await trials.trials_for_companies(body.companies)
    recruiting = sum(1 for study in studies if is_recruiting(study))
    logger.info(
        f"Fetched {len(studies)} trials for {len(body.companies)} companies",
        extra={"recruiting": recruiting},
    )
    return studies
