"""Rich console logging for CLI runs.

The API process uses the structured JSON formatter from
``observability.logging_config``; command-line tools prefer readable output.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logger(name: str = "app", level: str = "INFO", *, show_time: bool = False) -> logging.Logger:
    """Attach a Rich handler to ``name`` (idempotent) and return the logger."""
    logger = logging.getLogger(name)
    logger.setLevel(level.upper())

    if any(isinstance(h, RichHandler) for h in logger.handlers):
        return logger

    handler = RichHandler(console=Console(stderr=True), show_time=show_time, show_path=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    # Keep CLI output off the JSON root handler.
    logger.propagate = False
    return logger
