"""Logging, metrics and timing shared by the API, the rate service and the CLI."""

from .logging_config import configure_logging, get_logger
from .metrics import MetricsClient, RegistryMetricsClient, get_metrics_client
from .timing import Stopwatch, timed

__all__ = [
    "MetricsClient",
    "RegistryMetricsClient",
    "Stopwatch",
    "configure_logging",
    "get_logger",
    "get_metrics_client",
    "timed",
]
