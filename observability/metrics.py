"""Metrics client abstraction and implementations.

This module provides:
- MetricsClient: Abstract base class for metrics emission
- NullMetricsClient: No-op implementation (default)
- RegistryMetricsClient: In-process registry with a JSON snapshot

The backend is chosen by ``METRICS_BACKEND`` (``registry`` or ``null``). The
registry snapshot is served by ``GET /metrics``.
"""

from __future__ import annotations

import os
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any


def _tags_key(tags: dict[str, str] | None) -> str:
    if not tags:
        return ""
    return ",".join(f"{k}={v}" for k, v in sorted(tags.items()))


class MetricsClient(ABC):
    """Abstract base class for metrics emission."""

    @abstractmethod
    def incr(self, name: str, tags: dict[str, str] | None = None, value: int = 1) -> None:
        """Increment a counter metric."""
        ...

    @abstractmethod
    def timing(self, name: str, value_ms: float, tags: dict[str, str] | None = None) -> None:
        """Record a timing value in milliseconds."""
        ...


class NullMetricsClient(MetricsClient):
    """No-op metrics client for when metrics are disabled."""

    def incr(self, name: str, tags: dict[str, str] | None = None, value: int = 1) -> None:
        pass

    def timing(self, name: str, value_ms: float, tags: dict[str, str] | None = None) -> None:
        pass


class RegistryMetricsClient(MetricsClient):
    """In-process accumulation of counters and timing summaries.

    Usage:
        client = RegistryMetricsClient()
        client.incr("rates.cache_hit", {"cache": "combined"})
        client.timing("rates.recompute_ms", 150.5)
        snapshot = client.export_json()
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, dict[str, float]] = defaultdict(lambda: defaultdict(float))
        self._timings: dict[str, dict[str, dict[str, float]]] = defaultdict(dict)

    def incr(self, name: str, tags: dict[str, str] | None = None, value: int = 1) -> None:
        with self._lock:
            self._counters[name][_tags_key(tags)] += value

    def timing(self, name: str, value_ms: float, tags: dict[str, str] | None = None) -> None:
        key = _tags_key(tags)
        with self._lock:
            summary = self._timings[name].setdefault(
                key, {"count": 0, "sum_ms": 0.0, "max_ms": 0.0}
            )
            summary["count"] += 1
            summary["sum_ms"] += value_ms
            summary["max_ms"] = max(summary["max_ms"], value_ms)

    def export_json(self) -> dict[str, Any]:
        """Snapshot of every counter and timing summary."""
        with self._lock:
            return {
                "counters": {name: dict(values) for name, values in self._counters.items()},
                "timings": {
                    name: {labels: dict(s) for labels, s in series.items()}
                    for name, series in self._timings.items()
                },
            }

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._timings.clear()


_metrics_client: MetricsClient | None = None


def get_metrics_client() -> MetricsClient:
    """Get the global metrics client, initializing from ``METRICS_BACKEND`` if needed."""
    global _metrics_client
    if _metrics_client is None:
        backend = os.getenv("METRICS_BACKEND", "null").lower()
        if backend in ("registry", "prometheus"):
            _metrics_client = RegistryMetricsClient()
        else:
            _metrics_client = NullMetricsClient()
    return _metrics_client


def set_metrics_client(client: MetricsClient) -> None:
    """Set the global metrics client."""
    global _metrics_client
    _metrics_client = client


def reset_metrics_client() -> None:
    """Forget the global client; the next lookup re-reads the environment."""
    global _metrics_client
    _metrics_client = None
