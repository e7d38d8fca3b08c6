"""Single-slot result cache with a TTL.

Each instance holds at most one computed snapshot. Recomputation is serialized
by an ``asyncio.Lock`` so concurrent readers either receive the previous
complete value or wait for the new one; a failed recomputation leaves the
previous snapshot in place.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar

from observability.metrics import get_metrics_client

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class _Entry(Generic[T]):
    value: T
    computed_at: float
    expires_at: float | None


class SnapshotCache(Generic[T]):
    def __init__(
        self,
        name: str,
        *,
        ttl_s: float | None = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self._ttl_s = float(ttl_s) if ttl_s is not None and ttl_s > 0 else None
        self._clock = clock
        self._lock = asyncio.Lock()
        self._entry: _Entry[T] | None = None

    def _fresh(self) -> _Entry[T] | None:
        entry = self._entry
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at <= self._clock():
            return None
        return entry

    def peek(self) -> T | None:
        """Current value if present and not expired, without computing."""
        entry = self._fresh()
        return None if entry is None else entry.value

    @property
    def has_value(self) -> bool:
        return self._entry is not None

    async def get_or_compute(
        self, compute: Callable[[], Awaitable[T]], *, force_refresh: bool = False
    ) -> T:
        metrics = get_metrics_client()
        tags = {"cache": self.name}

        if not force_refresh:
            entry = self._fresh()
            if entry is not None:
                metrics.incr("rates.cache_hit", tags)
                return entry.value

        async with self._lock:
            # Another waiter may have refreshed the slot while we were queued.
            if not force_refresh:
                entry = self._fresh()
                if entry is not None:
                    metrics.incr("rates.cache_hit", tags)
                    return entry.value

            metrics.incr("rates.cache_miss", tags)
            logger.info("Recomputing %s snapshot (force_refresh=%s)", self.name, force_refresh)
            value = await compute()

            now = self._clock()
            expires_at = now + self._ttl_s if self._ttl_s is not None else None
            self._entry = _Entry(value=value, computed_at=now, expires_at=expires_at)
            return value

    def invalidate(self) -> None:
        self._entry = None


__all__ = ["SnapshotCache"]
