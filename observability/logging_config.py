"""Structured (JSON) logging for the API process.

Records are written to stderr as one JSON object per line. ``LOG_LEVEL`` and
``LOG_FORMAT`` (``json`` | ``text``) are read from the environment.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, MutableMapping

SERVICE_NAME = "hcpcs-rate-suite"

# Per-request INFO lines from the HTTP client drown out the market fetch summaries.
_NOISY_LOGGERS = ("httpx", "httpcore")


class StructuredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        fields = getattr(record, "extra_fields", None) or {}
        payload.update({key: value for key, value in fields.items() if value is not None})
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class StructuredLogger(logging.LoggerAdapter):
    """Adapter that carries ``extra=`` fields into the JSON payload.

    Per-call fields win over the defaults bound in :func:`get_logger`.
    """

    def process(self, msg: str, kwargs: MutableMapping[str, Any]) -> tuple[str, MutableMapping[str, Any]]:
        fields = {**(self.extra or {}), **(kwargs.get("extra") or {})}
        kwargs["extra"] = {"extra_fields": fields}
        return msg, kwargs


_configured = False


def _level_from_env() -> int:
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: int | None = None, structured: bool | None = None) -> None:
    """Install the root stderr handler once per process."""
    global _configured
    if _configured:
        return

    if level is None:
        level = _level_from_env()
    if structured is None:
        structured = os.getenv("LOG_FORMAT", "json").strip().lower() != "text"

    handler = logging.StreamHandler(sys.stderr)
    if structured:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(handler)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    _configured = True


def get_logger(name: str, **extra: Any) -> StructuredLogger:
    """Structured logger for API modules, with ``extra`` bound as default fields."""
    configure_logging()
    return StructuredLogger(logging.getLogger(name), extra)
