"""Dependency injection factories for API endpoints.

Settings are cached per process. Services and clients hang off ``app.state``
(created in the lifespan) and are built lazily when the lifespan has not run,
e.g. under a bare ``TestClient``.
"""

from __future__ import annotations

import asyncio
from functools import lru_cache

import httpx
from fastapi import Request

from app.infra.settings import get_infra_settings
from app.market.cms_claims import CmsClaimsClient
from app.market.fda import FdaClient
from app.market.trials import TrialsClient
from app.rates.service import RateService
from config.settings import MarketSettings, RateSettings
from observability.logging_config import get_logger

logger = get_logger("api_dependencies")


@lru_cache(maxsize=1)
def get_rate_settings() -> RateSettings:
    """Get cached RateSettings from environment."""
    return RateSettings()


@lru_cache(maxsize=1)
def get_market_settings() -> MarketSettings:
    """Get cached MarketSettings from environment."""
    return MarketSettings()


def get_rate_service(request: Request) -> RateService:
    state = request.app.state
    service = getattr(state, "rate_service", None)
    if service is None:
        logger.info("Creating RateService outside lifespan")
        service = RateService(get_rate_settings(), executor=getattr(state, "cpu_executor", None))
        state.rate_service = service
    return service


def _market_http(request: Request) -> tuple[httpx.AsyncClient, asyncio.Semaphore]:
    state = request.app.state
    client = getattr(state, "market_http", None)
    if client is None:
        client = httpx.AsyncClient(timeout=get_market_settings().timeout_s)
        state.market_http = client
    sem = getattr(state, "http_sem", None)
    if sem is None:
        sem = asyncio.Semaphore(get_infra_settings().http_concurrency)
        state.http_sem = sem
    return client, sem


def get_cms_client(request: Request) -> CmsClaimsClient:
    client, sem = _market_http(request)
    return CmsClaimsClient(client, get_market_settings(), sem=sem)


def get_fda_client(request: Request) -> FdaClient:
    client, sem = _market_http(request)
    return FdaClient(client, get_market_settings(), sem=sem)


def get_trials_client(request: Request) -> TrialsClient:
    client, sem = _market_http(request)
    return TrialsClient(client, get_market_settings(), sem=sem)


__all__ = [
    "get_cms_client",
    "get_fda_client",
    "get_market_settings",
    "get_rate_service",
    "get_rate_settings",
    "get_trials_client",
]
