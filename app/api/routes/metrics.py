"""Metrics endpoint.

Exports the in-process metrics registry as JSON when ``METRICS_BACKEND`` is
``registry``; otherwise reports that collection is disabled.

Usage:
    export METRICS_BACKEND=registry
    curl http://localhost:8000/metrics
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from observability.logging_config import get_logger
from observability.metrics import RegistryMetricsClient, get_metrics_client

router = APIRouter()
logger = get_logger("metrics_api")


@router.get(
    "/metrics",
    summary="Metrics as JSON",
    description="Cache hit/miss counters and recompute timings.",
)
def get_metrics() -> dict[str, Any]:
    client = get_metrics_client()

    if isinstance(client, RegistryMetricsClient):
        return {"enabled": True, "backend": "registry", **client.export_json()}

    return {
        "enabled": False,
        "backend": type(client).__name__,
        "counters": {},
        "timings": {},
        "note": "Set METRICS_BACKEND=registry to collect metrics",
    }
