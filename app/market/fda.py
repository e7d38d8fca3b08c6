"""openFDA device and drug records for a fixed set of competitors.

Each competitor maps to a handful of openFDA endpoints. Endpoints are fetched
independently: a failing endpoint is recorded with ``status: "error"`` and the
rest still run. Results are normalized to
``{source, name, description, date, status}`` rows.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Literal

import httpx

from app.common.exceptions import MarketDataError
from app.infra.http import RetryPolicy, get_with_retries
from config.settings import MarketSettings

logger = logging.getLogger(__name__)

SOURCE = "openfda"
UNKNOWN = "Unknown"


@dataclass(frozen=True)
class FdaEndpoint:
    name: str
    path: str
    params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Competitor:
    name: str
    kind: Literal["device", "drug"]
    endpoints: tuple[FdaEndpoint, ...]


def _device_endpoints(firm: str, product_clause: str | None = None) -> tuple[FdaEndpoint, ...]:
    quoted = f'"{firm}"'
    product = f" AND {product_clause}" if product_clause else ""
    codes = product_clause.replace("product_code", "device.device_report_product_code") if product_clause else None
    return (
        FdaEndpoint(
            "registration",
            "/device/registrationlisting.json",
            {"search": f"registration.owner_operator.legal_name:{quoted}{product}", "limit": 100},
        ),
        FdaEndpoint(
            "k510",
            "/device/510k.json",
            {
                "search": f'applicant:{quoted}{product} AND advisory_committee:"neurology" AND decision_summary:seizure',
                "limit": 100,
                "sort": "decision_date:desc",
            },
        ),
        FdaEndpoint(
            "enforcement",
            "/device/enforcement.json",
            {"search": f"firm_name:{quoted}{product}"},
        ),
        FdaEndpoint(
            "adverse",
            "/device/event.json",
            {"search": f"manufacturer_d_name:{quoted}" + (f" AND {codes}" if codes else ""), "limit": 100},
        ),
        FdaEndpoint(
            "udi",
            "/device/udi.json",
            {"search": f"company_name:{quoted}{product}", "limit": 100},
        ),
        FdaEndpoint(
            "pma",
            "/device/pma.json",
            {"search": f"applicant:{quoted}{product}", "limit": 100},
        ),
    )


COMPETITORS: tuple[Competitor, ...] = (
    Competitor("LivaNova", "device", _device_endpoints("LivaNova", "product_code:LYC")),
    Competitor("Medtronic", "device", _device_endpoints("Medtronic", "product_code:(LYC MHY)")),
    Competitor("NeuroPace", "device", _device_endpoints("NeuroPace", "product_code:MHY")),
    Competitor(
        "XCOPRI",
        "drug",
        (
            FdaEndpoint(
                "drugs",
                "/drug/ndc.json",
                {"search": 'manufacturer_name:"SK Biopharmaceuticals" AND brand_name:"XCOPRI"', "limit": 100},
            ),
            FdaEndpoint(
                "application",
                "/drug/drugsfda.json",
                {"search": 'sponsor_name:"SK Biopharmaceuticals" AND products.active_ingredients.name:"CENOBAMATE"', "limit": 100},
            ),
            FdaEndpoint(
                "adverse",
                "/drug/event.json",
                {"search": 'patient.drug.openfda.brand_name:"XCOPRI"', "limit": 100},
            ),
        ),
    ),
    Competitor("Precisis AG", "device", _device_endpoints("Precisis")),
    Competitor("Epi-Minder", "device", _device_endpoints("Epi-Minder")),
    Competitor("Flow Medical", "device", _device_endpoints("Flow Medical")),
)


def _first(items: Any) -> dict[str, Any]:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return {}


def _registration(result: dict[str, Any]) -> tuple[Any, Any, Any]:
    registration = result.get("registration") or {}
    names = result.get("proprietary_name")
    description = names[0] if isinstance(names, list) and names else "Registered device"
    return description, registration.get("created_date"), registration.get("status")


_Extractor = Callable[[dict[str, Any]], tuple[Any, Any, Any]]

_DEVICE_EXTRACTORS: dict[str, _Extractor] = {
    "registration": _registration,
    "k510": lambda r: (r.get("device_name") or "510(k) submission", r.get("decision_date"), r.get("decision")),
    "enforcement": lambda r: (
        r.get("product_description") or "Enforcement action",
        r.get("report_date"),
        r.get("status"),
    ),
    "adverse": lambda r: (
        _first(r.get("device")).get("device_report_product_code") or "Adverse event",
        r.get("date_received"),
        "Reported",
    ),
    "udi": lambda r: (r.get("brand_name") or "Device identifier", r.get("version_or_model_date"), "Active"),
    "pma": lambda r: (r.get("device_name") or "PMA submission", r.get("decision_date"), r.get("decision")),
}

_DRUG_EXTRACTORS: dict[str, _Extractor] = {
    "drugs": lambda r: (
        r.get("brand_name") or r.get("generic_name") or "Unknown drug",
        r.get("marketing_start_date") or r.get("start_marketing_date"),
        r.get("status") or r.get("product_type"),
    ),
    "application": lambda r: (
        _first(r.get("products")).get("brand_name") or "Unknown application",
        _first(r.get("submissions")).get("submission_status_date") or r.get("action_date"),
        _first(r.get("submissions")).get("submission_status") or r.get("application_status"),
    ),
    "adverse": lambda r: (
        _first((r.get("patient") or {}).get("drug")).get("medicinalproduct") or "Adverse event",
        r.get("receivedate"),
        "Reported",
    ),
}


def normalize_results(
    endpoint: str, results: list[dict[str, Any]], competitor: str, kind: str
) -> list[dict[str, Any]]:
    extractors = _DRUG_EXTRACTORS if kind == "drug" else _DEVICE_EXTRACTORS
    extract = extractors.get(endpoint)
    rows = []
    for result in results:
        description, date, status = extract(result) if extract else (None, None, None)
        rows.append(
            {
                "source": endpoint,
                "name": competitor,
                "description": description or UNKNOWN,
                "date": date or UNKNOWN,
                "status": status or UNKNOWN,
            }
        )
    return rows


def placeholder_row(competitor: str) -> dict[str, Any]:
    return {
        "source": "placeholder",
        "name": competitor,
        "description": f"No FDA data found for {competitor} across all endpoints",
        "date": UNKNOWN,
        "status": UNKNOWN,
    }


class FdaClient:
    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: MarketSettings,
        *,
        sem: asyncio.Semaphore | None = None,
        competitors: tuple[Competitor, ...] = COMPETITORS,
    ) -> None:
        self._client = client
        self._base_url = settings.fda_base_url.rstrip("/")
        self._sem = sem
        self._policy = RetryPolicy(max_retries=settings.max_retries, delay_s=settings.retry_delay_s)
        self.competitors = competitors

    async def _fetch_endpoint(self, competitor: Competitor, endpoint: FdaEndpoint) -> dict[str, Any]:
        url = f"{self._base_url}{endpoint.path}"
        logger.info("Fetching openFDA %s for %s", endpoint.name, competitor.name)
        try:
            resp = await get_with_retries(
                client=self._client,
                url=url,
                params=endpoint.params,
                policy=self._policy,
                source=SOURCE,
                sem=self._sem,
            )
        except MarketDataError as exc:
            logger.error("openFDA %s failed for %s: %s", endpoint.name, competitor.name, exc)
            return {"status": "error", "error": str(exc), "status_code": exc.status_code, "data": []}

        # openFDA answers "no matches" with 404.
        if resp.status_code == 404:
            return {"status": "empty", "count": 0, "data": []}
        if resp.status_code >= 400:
            logger.error("openFDA %s returned %d for %s", endpoint.name, resp.status_code, competitor.name)
            return {
                "status": "error",
                "error": f"HTTP {resp.status_code}",
                "status_code": resp.status_code,
                "data": [],
            }

        try:
            payload = resp.json()
        except ValueError:
            return {"status": "error", "error": "invalid JSON", "status_code": resp.status_code, "data": []}
        results = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(results, list):
            return {"status": "empty", "count": 0, "data": []}
        return {"status": "success", "count": len(results), "data": results}

    async def fetch_competitor(self, competitor: Competitor) -> dict[str, Any]:
        outcomes = await asyncio.gather(
            *(self._fetch_endpoint(competitor, endpoint) for endpoint in competitor.endpoints)
        )
        endpoints: dict[str, Any] = {}
        combined: list[dict[str, Any]] = []
        for endpoint, outcome in zip(competitor.endpoints, outcomes):
            endpoints[endpoint.name] = outcome
            if outcome["status"] == "success":
                combined.extend(
                    normalize_results(endpoint.name, outcome["data"], competitor.name, competitor.kind)
                )
        if not combined:
            combined = [placeholder_row(competitor.name)]
        return {"endpoints": endpoints, "combined_results": combined}

    async def fetch_all(self) -> dict[str, Any]:
        results = await asyncio.gather(*(self.fetch_competitor(c) for c in self.competitors))
        return {c.name: data for c, data in zip(self.competitors, results)}


__all__ = ["COMPETITORS", "Competitor", "FdaClient", "FdaEndpoint", "normalize_results", "placeholder_row"]
