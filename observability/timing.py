"""Wall-clock timing for rate recomputation and upstream calls."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator

from .metrics import get_metrics_client


class Stopwatch:
    """Elapsed time of one timed block; ``elapsed_ms`` is final once the block exits."""

    __slots__ = ("name", "tags", "started", "elapsed_ms")

    def __init__(self, name: str, tags: dict[str, str] | None = None) -> None:
        self.name = name
        self.tags = dict(tags or {})
        self.started = time.perf_counter()
        self.elapsed_ms = 0.0

    def stop(self) -> float:
        self.elapsed_ms = (time.perf_counter() - self.started) * 1000
        return self.elapsed_ms


@contextmanager
def timed(
    name: str, tags: dict[str, str] | None = None, *, emit_metric: bool = True
) -> Iterator[Stopwatch]:
    """Time a block and record it as a timing metric tagged with its outcome.

    Usage:
        with timed("rates.compute_ms", {"stage": "payments"}) as watch:
            load_payment_series(payment_dir)
        logger.info("took %.1f ms", watch.elapsed_ms)
    """
    watch = Stopwatch(name, tags)
    outcome = "ok"
    try:
        yield watch
    except BaseException:
        outcome = "error"
        raise
    finally:
        watch.stop()
        if emit_metric:
            get_metrics_client().timing(name, watch.elapsed_ms, {**watch.tags, "outcome": outcome})
