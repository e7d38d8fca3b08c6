"""Async HTTP GET with a bounded, static-delay retry loop.

Used by the market and regulatory data clients. Retries on transport errors,
timeouts, 429 and transient 5xx; any other status is returned to the caller
as-is. After the last attempt a :class:`MarketDataError` is raised.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Mapping

import httpx

from app.common.exceptions import MarketDataError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    delay_s: float = 2.0
    retry_on_statuses: tuple[int, ...] = (429,)

    def should_retry(self, status_code: int) -> bool:
        return status_code in self.retry_on_statuses or 500 <= status_code <= 599


async def get_with_retries(
    *,
    client: httpx.AsyncClient,
    url: str,
    params: Mapping[str, Any] | None = None,
    policy: RetryPolicy | None = None,
    source: str | None = None,
    sem: asyncio.Semaphore | None = None,
) -> httpx.Response:
    policy = policy or RetryPolicy()
    attempts = max(1, policy.max_retries)
    last_error: str = ""
    last_status: int | None = None

    for attempt in range(1, attempts + 1):
        try:
            if sem is not None:
                async with sem:
                    resp = await client.get(url, params=dict(params or {}))
            else:
                resp = await client.get(url, params=dict(params or {}))
        except httpx.TransportError as exc:
            last_error = f"{type(exc).__name__}: {exc}"
            last_status = None
        else:
            if not policy.should_retry(resp.status_code):
                return resp
            last_error = f"HTTP {resp.status_code}"
            last_status = resp.status_code

        if attempt < attempts:
            logger.warning(
                "GET %s failed (%s), attempt %d/%d; retrying in %.1fs",
                url,
                last_error,
                attempt,
                attempts,
                policy.delay_s,
            )
            await asyncio.sleep(policy.delay_s)

    raise MarketDataError(
        f"GET {url} failed after {attempts} attempts: {last_error}",
        source=source,
        status_code=last_status,
    )


async def get_json_with_retries(
    *,
    client: httpx.AsyncClient,
    url: str,
    params: Mapping[str, Any] | None = None,
    policy: RetryPolicy | None = None,
    source: str | None = None,
    sem: asyncio.Semaphore | None = None,
) -> Any:
    """GET ``url`` and decode JSON. Non-2xx after retries raises ``MarketDataError``."""
    resp = await get_with_retries(
        client=client, url=url, params=params, policy=policy, source=source, sem=sem
    )
    if resp.status_code >= 400:
        raise MarketDataError(
            f"GET {url} returned HTTP {resp.status_code}",
            source=source,
            status_code=resp.status_code,
        )
    try:
        return resp.json()
    except ValueError as exc:
        raise MarketDataError(
            f"GET {url} returned invalid JSON", source=source, status_code=resp.status_code
        ) from exc


__all__ = ["RetryPolicy", "get_json_with_retries", "get_with_retries"]
