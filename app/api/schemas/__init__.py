"""API schemas package.

This package contains all Pydantic schemas for the FastAPI integration layer.
"""

from app.api.schemas.base import (
    CalculateRequest,
    CalculateResponse,
    MarketValuesResponse,
    TrialsRequest,
)

__all__ = [
    "CalculateRequest",
    "CalculateResponse",
    "MarketValuesResponse",
    "TrialsRequest",
]
