"""Tests for timing metrics."""

import pytest

from observability.metrics import RegistryMetricsClient, reset_metrics_client, set_metrics_client
from observability.timing import timed


@pytest.fixture
def registry():
    client = RegistryMetricsClient()
    set_metrics_client(client)
    yield client
    reset_metrics_client()


def test_timed_records_outcome(registry):
    with timed("rates.compute_ms", {"stage": "payments"}) as watch:
        pass
    with pytest.raises(ValueError):
        with timed("rates.compute_ms", {"stage": "payments"}):
            raise ValueError("bad file")

    assert watch.elapsed_ms >= 0
    timings = registry.export_json()["timings"]["rates.compute_ms"]
    assert timings["outcome=ok,stage=payments"]["count"] == 1
    assert timings["outcome=error,stage=payments"]["count"] == 1
