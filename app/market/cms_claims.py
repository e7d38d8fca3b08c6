"""CMS Medicare Part B claims datasets (data.cms.gov data-api).

Three datasets are read page by page (``offset``/``size``): by provider and
service, by geography and service, and by provider. A short page or
``max_pages`` ends the walk.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Sequence

import httpx

from app.infra.http import RetryPolicy, get_json_with_retries
from app.rates.ingest import parse_ratio
from config.settings import MarketSettings

logger = logging.getLogger(__name__)

MARKET_CODES: tuple[str, ...] = ("61889", "61891", "61892", "64568", "64569", "64570")

SOURCE = "cms_claims"


class CmsClaimsClient:
    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: MarketSettings,
        *,
        sem: asyncio.Semaphore | None = None,
    ) -> None:
        self._client = client
        self._settings = settings
        self._sem = sem
        self._policy = RetryPolicy(
            max_retries=settings.max_retries, delay_s=settings.retry_delay_s
        )

    async def _paginate(self, url: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        size = self._settings.page_size
        rows: list[dict[str, Any]] = []
        for page in range(self._settings.max_pages):
            offset = page * size
            data = await get_json_with_retries(
                client=self._client,
                url=url,
                params={**params, "offset": offset, "size": size},
                policy=self._policy,
                source=SOURCE,
                sem=self._sem,
            )
            if not isinstance(data, list):
                logger.warning("Unexpected CMS payload type %s from %s", type(data).__name__, url)
                break
            logger.debug("CMS %s offset %d: %d rows", url, offset, len(data))
            rows.extend(item for item in data if isinstance(item, dict))
            if len(data) < size:
                break
        else:
            logger.warning("CMS pagination for %s stopped at max_pages=%d", url, self._settings.max_pages)
        return rows

    async def fetch_service_rows(self, code: str) -> list[dict[str, Any]]:
        rows = await self._paginate(self._settings.cms_service_url, {"filter[HCPCS_Cd]": code})
        return [row for row in rows if row.get("HCPCS_Cd") == code]

    async def fetch_geo_rows(self, code: str) -> list[dict[str, Any]]:
        rows = await self._paginate(self._settings.cms_geo_url, {"filter[HCPCS_Cd]": code})
        return [row for row in rows if row.get("HCPCS_Cd") == code]

    async def fetch_provider_rows(self, npis: Sequence[str]) -> list[dict[str, Any]]:
        if not npis:
            return []
        return await self._paginate(
            self._settings.cms_provider_url,
            {
                "filter[Rndrng_NPI][condition][operator]": "IN",
                "filter[Rndrng_NPI][condition][value]": ",".join(npis),
            },
        )

    async def market_values(self, codes: Sequence[str] = MARKET_CODES) -> dict[str, Any]:
        service_batches, geo_batches = await asyncio.gather(
            asyncio.gather(*(self.fetch_service_rows(code) for code in codes)),
            asyncio.gather(*(self.fetch_geo_rows(code) for code in codes)),
        )
        service_rows = [row for batch in service_batches for row in batch]
        geo_rows = [row for batch in geo_batches for row in batch]
        provider_rows = await self.fetch_provider_rows(_unique_npis(service_rows))
        return analyze_market_values(service_rows, provider_rows, geo_rows, codes=codes)


def _unique_npis(rows: Iterable[dict[str, Any]]) -> list[str]:
    seen: dict[str, None] = {}
    for row in rows:
        npi = row.get("Rndrng_NPI")
        if npi:
            seen.setdefault(str(npi), None)
    return list(seen)


def _geo_summary(geo_rows: Iterable[dict[str, Any]]) -> dict[str, dict[str, dict[str, float]]]:
    summary: dict[str, dict[str, dict[str, float]]] = {}
    for row in geo_rows:
        code = row.get("HCPCS_Cd")
        if not code:
            continue
        place = "facility" if row.get("Place_Of_Srvc") == "F" else "office"
        services = parse_ratio(row.get("Tot_Srvcs"))
        summary.setdefault(code, {"facility": {}, "office": {}})[place] = {
            "total_providers": int(parse_ratio(row.get("Tot_Rndrng_Prvdrs"))),
            "total_services": services,
            "total_beneficiaries": int(parse_ratio(row.get("Tot_Benes"))),
            "total_spending": parse_ratio(row.get("Avg_Mdcr_Pymt_Amt")) * services,
        }
    return summary


def analyze_market_values(
    service_rows: Iterable[dict[str, Any]],
    provider_rows: Iterable[dict[str, Any]],
    geo_rows: Iterable[dict[str, Any]],
    *,
    codes: Iterable[str] | None = None,
) -> dict[str, dict[str, Any]]:
    """Aggregate claims rows into one market summary per HCPCS code.

    Averages are running means over provider-level service rows. Market size is
    national spending from the geography dataset, split by place of service.
    """
    wanted = set(codes) if codes is not None else None
    providers = {str(row.get("Rndrng_NPI")): row for row in provider_rows if row.get("Rndrng_NPI")}
    geo = _geo_summary(geo_rows)
    analysis: dict[str, dict[str, Any]] = {}

    for row in service_rows:
        code = row.get("HCPCS_Cd")
        if not code or (wanted is not None and code not in wanted):
            continue

        record = analysis.get(code)
        if record is None:
            geo_summary = geo.get(code, {"facility": {}, "office": {}})
            facility_spending = geo_summary["facility"].get("total_spending", 0.0)
            office_spending = geo_summary["office"].get("total_spending", 0.0)
            record = analysis[code] = {
                "description": row.get("HCPCS_Desc"),
                "total_services": 0.0,
                "total_beneficiaries": 0.0,
                "total_spending": 0.0,
                "provider_count": 0,
                "avg_submitted_charge": 0.0,
                "avg_medicare_payment": 0.0,
                "market_size": facility_spending + office_spending,
                "revenue_splits": {"facility": facility_spending, "office": office_spending},
                "geo_summary": geo_summary,
                "providers": [],
            }

        services = parse_ratio(row.get("Tot_Srvcs"))
        avg_payment = parse_ratio(row.get("Avg_Mdcr_Pymt_Amt"))
        spending = avg_payment * services

        record["total_services"] += services
        record["total_beneficiaries"] += parse_ratio(row.get("Tot_Benes"))
        record["total_spending"] += spending
        record["provider_count"] += 1
        n = record["provider_count"]
        record["avg_submitted_charge"] += (parse_ratio(row.get("Avg_Sbmtd_Chrg")) - record["avg_submitted_charge"]) / n
        record["avg_medicare_payment"] += (avg_payment - record["avg_medicare_payment"]) / n

        npi = str(row.get("Rndrng_NPI") or "")
        provider = providers.get(npi, {})
        record["providers"].append(
            {
                "npi": npi,
                "state": row.get("Rndrng_Prvdr_State_Abrvtn"),
                "specialty": provider.get("Rndrng_Prvdr_Type") or "Unknown",
                "services": services,
                "spending": spending,
            }
        )

    return analysis


__all__ = ["CmsClaimsClient", "MARKET_CODES", "analyze_market_values"]
