"""Infrastructure/runtime settings (env-driven).

Operational flags for the API runtime, read once per process. Domain settings
(data directories, analysis years, upstream URLs) live in ``config.settings``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_int(*names: str, default: int) -> int:
    for name in names:
        raw = os.getenv(name)
        if raw is None:
            continue
        raw = raw.strip()
        if not raw:
            continue
        try:
            return int(raw)
        except ValueError:
            continue
    return default


def _env_first(*names: str) -> str | None:
    for name in names:
        value = os.getenv(name)
        if value is not None and value.strip() != "":
            return value
    return None


@dataclass(frozen=True)
class InfraSettings:
    """Runtime toggles for API startup and outbound HTTP."""

    cpu_workers: int
    http_concurrency: int
    skip_dotenv: bool
    disable_static_files: bool

    @staticmethod
    def from_env() -> "InfraSettings":
        cpu_workers = max(1, _get_int("CPU_WORKERS", "RATESUITE_CPU_WORKERS", default=2))
        http_concurrency = max(
            1, _get_int("HTTP_CONCURRENCY", "RATESUITE_HTTP_CONCURRENCY", default=4)
        )
        skip_dotenv = _truthy(_env_first("RATESUITE_SKIP_DOTENV"))
        disable_static_files = _truthy(_env_first("DISABLE_STATIC_FILES"))

        return InfraSettings(
            cpu_workers=cpu_workers,
            http_concurrency=http_concurrency,
            skip_dotenv=skip_dotenv,
            disable_static_files=disable_static_files,
        )


@lru_cache(maxsize=1)
def get_infra_settings() -> InfraSettings:
    return InfraSettings.from_env()


__all__ = ["InfraSettings", "get_infra_settings"]
