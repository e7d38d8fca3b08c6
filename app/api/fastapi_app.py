"""FastAPI application wiring for the HCPCS Rate Suite.

Run with:
    uvicorn app.api.fastapi_app:app --port 8000
"""

# ruff: noqa: E402

from __future__ import annotations

import asyncio
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import httpx
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles


def _truthy_env(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes")


_REPO_ROOT = Path(__file__).resolve().parents[2]

# Prefer explicitly-exported environment variables over values in `.env`.
# Tests can opt out by setting `RATESUITE_SKIP_DOTENV=1`.
if not _truthy_env("RATESUITE_SKIP_DOTENV"):
    try:
        load_dotenv(dotenv_path=_REPO_ROOT / ".env", override=False)
    except OSError as e:
        logging.getLogger(__name__).warning(
            "Failed to load .env via python-dotenv (%s); proceeding with OS env only",
            type(e).__name__,
        )

from app.api.dependencies import get_market_settings, get_rate_settings
from app.api.routes.market import router as market_router
from app.api.routes.metrics import router as metrics_router
from app.api.routes.rates import router as rates_router
from app.api.routes.reports import router as reports_router
from app.infra.settings import get_infra_settings
from app.rates.service import RateService


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the shared executor, outbound HTTP client and rate service.

    Environment variables (see app.infra.settings.InfraSettings):
    - CPU_WORKERS: threads for file processing and report rendering
    - HTTP_CONCURRENCY: concurrent outbound market-data requests
    """
    settings = get_infra_settings()
    logger = logging.getLogger(__name__)

    app.state.cpu_executor = ThreadPoolExecutor(max_workers=settings.cpu_workers)
    app.state.http_sem = asyncio.Semaphore(settings.http_concurrency)
    app.state.market_http = httpx.AsyncClient(
        timeout=httpx.Timeout(get_market_settings().timeout_s, connect=10.0)
    )

    rate_settings = get_rate_settings()
    app.state.rate_service = RateService(rate_settings, executor=app.state.cpu_executor)
    logger.info(
        "Rate service ready (data_dir=%s, payment_dir=%s, years=%s)",
        rate_settings.data_dir,
        rate_settings.payment_dir,
        ",".join(rate_settings.years),
    )

    yield  # Application runs

    market_http = getattr(app.state, "market_http", None)
    if market_http is not None:
        await market_http.aclose()

    cpu_executor = getattr(app.state, "cpu_executor", None)
    if cpu_executor is not None:
        cpu_executor.shutdown(wait=False, cancel_futures=True)


app = FastAPI(
    title="HCPCS Rate Suite API",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS (dev-friendly defaults)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(rates_router, tags=["rates"])
app.include_router(reports_router, tags=["reports"])
app.include_router(market_router, tags=["market"])
app.include_router(metrics_router, tags=["metrics"])


def _static_dir() -> Path:
    return _REPO_ROOT / "public"


if not get_infra_settings().disable_static_files and _static_dir().is_dir():
    app.mount("/static", StaticFiles(directory=str(_static_dir())), name="static")


@app.get("/")
async def root(request: Request) -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "HCPCS Rate Suite API",
        "version": "0.1.0",
        "endpoints": {
            "health": "/health",
            "docs": "/docs",
            "reimbursement": "/api/reimbursement",
            "combined_rates": "/api/combined-rates",
            "calculate": "/api/calculate",
            "code_data": "/api/data/code/{code}",
            "group_data": "/api/data/directory/{group}",
            "history": "/api/data/history/{code}",
            "trends": "/api/data/trends",
            "hcpcs_data": "/api/hcpcs-data",
            "reimbursement_report": "/reimbursement-report",
            "combined_report": "/combined-report",
            "market_values": "/market-values",
            "fda_data": "/api/fda-data",
            "trials": "/fetch-trials",
            "metrics": "/metrics",
        },
    }


@app.get("/health")
async def health(request: Request) -> dict[str, Any]:
    # Liveness probe: keep payload stable and minimal.
    return {"ok": True}
