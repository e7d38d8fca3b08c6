"""Configuration settings using pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings


_REPO_ROOT = Path(__file__).resolve().parents[1]

DEFAULT_YEARS: tuple[str, ...] = ("2020", "2021", "2022", "2023", "2024A", "2024B", "2025")


def _resolve_repo_path(path: Path) -> Path:
    if path.is_absolute():
        return path
    return (_REPO_ROOT / path).resolve()


class RateSettings(BaseSettings):
    """Settings for fee-schedule ingestion and the rate caches.

    ``data_dir`` holds one sub-directory per code group; ``payment_dir`` holds the
    Addendum B payment files.
    """

    data_dir: Path = Field(
        default=Path("data"),
        validation_alias=AliasChoices("RATES_DATA_DIR", "RATESUITE_DATA_DIR"),
    )
    payment_dir: Path = Field(
        default=Path("data/AB"),
        validation_alias=AliasChoices("RATES_PAYMENT_DIR", "RATESUITE_PAYMENT_DIR"),
    )
    years: list[str] = Field(default_factory=lambda: list(DEFAULT_YEARS))
    facility_type: Literal["facility", "non-facility"] = "facility"

    # One hour, matching the refresh cadence of the source files.
    cache_ttl_s: float = 3600.0

    model_config = {"env_prefix": "RATES_", "extra": "ignore", "populate_by_name": True}

    @model_validator(mode="after")
    def _resolve_paths(self) -> "RateSettings":
        self.data_dir = _resolve_repo_path(self.data_dir)
        self.payment_dir = _resolve_repo_path(self.payment_dir)
        return self


class MarketSettings(BaseSettings):
    """Settings for the CMS / openFDA / ClinicalTrials.gov collaborators."""

    cms_service_url: str = (
        "https://data.cms.gov/data-api/v1/dataset/92396110-2aed-4d63-a6a2-5d6207d46a29/data"
    )
    cms_provider_url: str = (
        "https://data.cms.gov/data-api/v1/dataset/8889d81e-2ee7-448f-8713-f071038289b5/data"
    )
    cms_geo_url: str = (
        "https://data.cms.gov/data-api/v1/dataset/6fea9d79-0129-4e4c-b1b8-23cd86a4f435/data"
    )
    cms_data_year: int = 2022
    fda_base_url: str = "https://api.fda.gov"
    trials_base_url: str = "https://clinicaltrials.gov/api/v2/studies"

    page_size: int = 100
    max_pages: int = 50
    max_retries: int = 3
    retry_delay_s: float = 2.0
    timeout_s: float = 15.0

    model_config = {"env_prefix": "MARKET_", "extra": "ignore"}
