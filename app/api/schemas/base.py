"""Pydantic schemas for the FastAPI integration layer."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CalculateRequest(BaseModel):
    """Direct RVU formula inputs. GPCIs default to the national value 1.0."""

    model_config = ConfigDict(populate_by_name=True)

    work_rvu: float = Field(..., alias="workRVU")
    pe_rvu: float = Field(..., alias="peRVU")
    mp_rvu: float = Field(..., alias="mpRVU")
    conversion_factor: float = Field(..., alias="conversionFactor")
    work_gpci: float = Field(1.0, alias="workGPCI")
    pe_gpci: float = Field(1.0, alias="peGPCI")
    mp_gpci: float = Field(1.0, alias="mpGPCI")


class CalculateResponse(BaseModel):
    inputs: CalculateRequest
    reimbursement: float
    result: float


class TrialsRequest(BaseModel):
    companies: list[str]


class MarketValuesResponse(BaseModel):
    status: str = "success"
    data: dict[str, Any]
    year: int
    hcpcs_code: str | None = None
    timestamp: str


__all__ = [
    "CalculateRequest",
    "CalculateResponse",
    "MarketValuesResponse",
    "TrialsRequest",
]
