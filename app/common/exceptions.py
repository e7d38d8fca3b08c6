"""Exception hierarchy for the HCPCS Rate Suite."""

from __future__ import annotations


class RateSuiteError(Exception):
    """Base error for rate computation and market data."""

    pass


class RateComputationError(RateSuiteError):
    """A full recomputation of the rate series failed (e.g. unreadable data directory)."""

    def __init__(self, message: str, stage: str | None = None):
        self.stage = stage
        super().__init__(message)


class MarketDataError(RateSuiteError):
    """An upstream market/regulatory API call failed after all retries."""

    def __init__(self, message: str, source: str | None = None, status_code: int | None = None):
        self.source = source
        self.status_code = status_code
        super().__init__(message)
