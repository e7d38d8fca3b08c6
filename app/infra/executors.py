"""Executor helpers for running blocking file and render work off the event loop."""

from __future__ import annotations

import asyncio
import functools
from concurrent.futures import Executor
from typing import Any, Callable, TypeVar

from fastapi import FastAPI

R = TypeVar("R")


async def run_in_executor(executor: Executor | None, fn: Callable[..., R], *args: Any, **kwargs: Any) -> R:
    """Run ``fn`` in ``executor`` (the loop's default pool when ``None``)."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(executor, functools.partial(fn, *args, **kwargs))


async def run_cpu(app: FastAPI, fn: Callable[..., R], *args: Any, **kwargs: Any) -> R:
    """Run a blocking function in the app's CPU executor."""
    return await run_in_executor(getattr(app.state, "cpu_executor", None), fn, *args, **kwargs)


__all__ = ["run_cpu", "run_in_executor"]
