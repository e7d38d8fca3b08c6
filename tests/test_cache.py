"""Tests for the single-slot snapshot cache."""

import asyncio

import pytest

from app.infra.cache import SnapshotCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _counter():
    calls = {"n": 0}

    async def compute():
        calls["n"] += 1
        return calls["n"]

    return calls, compute


def test_value_is_reused_until_ttl_expires():
    clock = FakeClock()
    cache = SnapshotCache("test", ttl_s=10.0, clock=clock)
    calls, compute = _counter()

    async def scenario():
        first = await cache.get_or_compute(compute)
        clock.now = 9.0
        second = await cache.get_or_compute(compute)
        clock.now = 10.0
        third = await cache.get_or_compute(compute)
        return first, second, third

    assert asyncio.run(scenario()) == (1, 1, 2)
    assert calls["n"] == 2


def test_force_refresh_recomputes():
    cache = SnapshotCache("test", ttl_s=3600.0)
    _, compute = _counter()

    async def scenario():
        await cache.get_or_compute(compute)
        return await cache.get_or_compute(compute, force_refresh=True)

    assert asyncio.run(scenario()) == 2
    assert cache.peek() == 2


def test_failed_recompute_keeps_previous_value():
    cache = SnapshotCache("test", ttl_s=3600.0)

    async def good():
        return "old"

    async def bad():
        raise RuntimeError("disk gone")

    async def scenario():
        await cache.get_or_compute(good)
        with pytest.raises(RuntimeError):
            await cache.get_or_compute(bad, force_refresh=True)
        return cache.peek()

    assert asyncio.run(scenario()) == "old"


def test_concurrent_readers_share_one_computation():
    cache = SnapshotCache("test", ttl_s=3600.0)
    calls = {"n": 0}

    async def slow():
        calls["n"] += 1
        await asyncio.sleep(0.01)
        return "value"

    async def scenario():
        return await asyncio.gather(*(cache.get_or_compute(slow) for _ in range(5)))

    assert asyncio.run(scenario()) == ["value"] * 5
    assert calls["n"] == 1


def test_invalidate_and_no_ttl():
    cache = SnapshotCache("test", ttl_s=None)
    _, compute = _counter()
    asyncio.run(cache.get_or_compute(compute))
    assert cache.has_value
    cache.invalidate()
    assert not cache.has_value
    assert cache.peek() is None


def test_cache_records_hits_and_misses():
    from observability.metrics import RegistryMetricsClient, reset_metrics_client, set_metrics_client

    registry = RegistryMetricsClient()
    set_metrics_client(registry)
    try:
        cache = SnapshotCache("metered", ttl_s=3600.0)
        _, compute = _counter()

        async def scenario():
            await cache.get_or_compute(compute)
            await cache.get_or_compute(compute)

        asyncio.run(scenario())
    finally:
        reset_metrics_client()

    counters = registry.export_json()["counters"]
    assert counters["rates.cache_miss"] == {"cache=metered": 1}
    assert counters["rates.cache_hit"] == {"cache=metered": 1}
