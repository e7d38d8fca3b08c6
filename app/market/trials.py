"""ClinicalTrials.gov (API v2) epilepsy studies by sponsor company.

For each company the client combines a curated list of NCT ids with the ids
found by a sponsor search over the company's name variations, then fetches
each study. Studies are de-duplicated and ordered recruiting first, newest
update next.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from typing import Any, Iterable, Mapping, Sequence

import httpx

from app.common.exceptions import MarketDataError
from app.infra.http import RetryPolicy, get_json_with_retries
from config.settings import MarketSettings

logger = logging.getLogger(__name__)

SOURCE = "clinicaltrials"

SEARCH_CONDITION = "epilepsy"
SEARCH_FIELDS = (
    "NCTId,BriefTitle,OverallStatus,HasResults,InterventionType,LocationCity,"
    "LocationCountry,LeadSponsorName,StartDate,CompletionDate,Phase,StudyType,LastUpdatePostDate"
)

COMPANY_VARIATIONS: Mapping[str, tuple[str, ...]] = {
    "Livanova": ("LivaNova", "LivaNova PLC", "Cyberonics", "Cyberonics Inc", "VNS Therapy"),
    "Medtronic": ("Medtronic", "Medtronic Inc", "Medtronic Neuromodulation"),
    "NeuroPace": ("NeuroPace", "NeuroPace Inc", "NeuroPace, Inc."),
    "XCORPRI": ("XCORPRI", "XCORP", "X Corp"),
    "EpiMinder": ("EpiMinder", "EpiMinder Ltd", "Epiminder Limited"),
    "FlowMedical": ("FlowMedical", "Flow Medical", "Flow Medical Inc"),
    "PrecisisAG": ("PrecisisAG", "Precisis AG", "Precisis", "EASEE"),
}

# Hand-curated studies that sponsor search does not reliably surface.
KNOWN_TRIALS: Mapping[str, tuple[str, ...]] = {
    "Livanova": (
        "NCT03773133", "NCT03529045", "NCT05893862", "NCT03802344", "NCT05629507",
        "NCT05701774", "NCT03997175", "NCT05975125", "NCT03913624", "NCT03957798",
        "NCT05976283", "NCT01281293", "NCT05038956", "NCT03422328", "NCT05318053",
        "NCT04947358", "NCT04352907", "NCT01359527", "NCT01979367", "NCT04828343",
        "NCT03696251", "NCT01598454", "NCT04691947", "NCT05034419", "NCT01362114",
        "NCT00888134", "NCT01099021",
    ),
    "Medtronic": (
        "NCT05172284", "NCT05667194", "NCT05370482", "NCT05234138", "NCT05704660",
        "NCT04945460", "NCT04691739", "NCT01572792", "NCT00101933", "NCT05412160",
        "NCT05437783", "NCT01608269", "NCT01249222", "NCT01898546", "NCT02320136",
        "NCT02235792", "NCT05259306", "NCT01493804", "NCT05353803", "NCT03733782",
        "NCT04297852", "NCT05063890", "NCT03844919",
    ),
    "NeuroPace": (
        "NCT05525429", "NCT05667194", "NCT05442125", "NCT05524246", "NCT04602234",
        "NCT03928743", "NCT00572195", "NCT00264810", "NCT03163303", "NCT00379171",
        "NCT05125991", "NCT05082129", "NCT05052697", "NCT02343380", "NCT02865395",
        "NCT02578953", "NCT05070338", "NCT05077839", "NCT01970826", "NCT05384210",
        "NCT04538612",
    ),
    "XCORPRI": ("NCT04282083", "NCT05721742", "NCT03979794", "NCT05723770"),
    "EpiMinder": ("NCT04944914", "NCT05477550", "NCT05825469", "NCT05736094", "NCT05743088"),
    "FlowMedical": (
        "NCT05435001", "NCT05638386", "NCT05753098", "NCT04850573", "NCT04728490", "NCT05046977",
    ),
    "PrecisisAG": (
        "NCT03657057", "NCT05066113", "NCT04914052", "NCT03847752", "NCT04940637",
        "NCT05603260", "NCT05677477", "NCT03505658",
    ),
}


def company_variations(company: str) -> tuple[str, ...]:
    return COMPANY_VARIATIONS.get(company, (company,))


def _status_module(study: Mapping[str, Any]) -> Mapping[str, Any]:
    return (study.get("protocolSection") or {}).get("statusModule") or {}


def nct_id(study: Mapping[str, Any]) -> str | None:
    return ((study.get("protocolSection") or {}).get("identificationModule") or {}).get("nctId")


def overall_status(study: Mapping[str, Any]) -> str:
    return str(_status_module(study).get("overallStatus") or "")


def last_update(study: Mapping[str, Any]) -> str:
    status = _status_module(study)
    struct = status.get("lastUpdatePostDateStruct") or {}
    return str(struct.get("date") or status.get("lastUpdatePostDate") or "1970-01-01")


def is_recruiting(study: Mapping[str, Any]) -> bool:
    return overall_status(study).upper() == "RECRUITING"


def sort_studies(studies: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Recruiting studies first, then most recently updated."""
    ordered = sorted(studies, key=last_update, reverse=True)
    return sorted(ordered, key=lambda study: not is_recruiting(study))


class TrialsClient:
    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: MarketSettings,
        *,
        sem: asyncio.Semaphore | None = None,
    ) -> None:
        self._client = client
        self._base_url = settings.trials_base_url.rstrip("/")
        self._page_size = settings.page_size
        self._sem = sem
        self._policy = RetryPolicy(max_retries=settings.max_retries, delay_s=settings.retry_delay_s)

    async def search_by_sponsor(self, company: str) -> list[dict[str, Any]]:
        studies: list[dict[str, Any]] = []
        for sponsor in company_variations(company):
            try:
                data = await get_json_with_retries(
                    client=self._client,
                    url=self._base_url,
                    params={
                        "query.cond": SEARCH_CONDITION,
                        "query.spons": sponsor,
                        "fields": SEARCH_FIELDS,
                        "countTotal": "true",
                        "pageSize": self._page_size,
                    },
                    policy=self._policy,
                    source=SOURCE,
                    sem=self._sem,
                )
            except MarketDataError as exc:
                logger.error("Trial search failed for sponsor %r: %s", sponsor, exc)
                continue
            found = data.get("studies") if isinstance(data, dict) else None
            if found:
                logger.info("Found %d trials for sponsor %r", len(found), sponsor)
                studies.extend(found)
        return studies

    async def fetch_study(self, study_id: str) -> dict[str, Any] | None:
        try:
            data = await get_json_with_retries(
                client=self._client,
                url=f"{self._base_url}/{study_id}",
                policy=self._policy,
                source=SOURCE,
                sem=self._sem,
            )
        except MarketDataError as exc:
            logger.error("Could not fetch trial %s: %s", study_id, exc)
            return None
        return data if isinstance(data, dict) else None

    async def trials_for_company(self, company: str) -> list[dict[str, Any]]:
        ids: dict[str, None] = dict.fromkeys(KNOWN_TRIALS.get(company, ()))
        for study in await self.search_by_sponsor(company):
            study_id = nct_id(study)
            if study_id:
                ids.setdefault(study_id, None)

        logger.info("Fetching %d unique trials for %r", len(ids), company)
        fetched = await asyncio.gather(*(self.fetch_study(study_id) for study_id in ids))
        studies = [{**study, "company": company} for study in fetched if study is not None]

        counts = Counter(overall_status(study) or "Unknown" for study in studies)
        logger.info("Retrieved %d trials for %r: %s", len(studies), company, dict(counts))
        return sort_studies(studies)

    async def trials_for_companies(self, companies: Sequence[str]) -> list[dict[str, Any]]:
        trials: list[dict[str, Any]] = []
        for company in companies:
            trials.extend(await self.trials_for_company(company))
        return trials


__all__ = [
    "COMPANY_VARIATIONS",
    "KNOWN_TRIALS",
    "TrialsClient",
    "company_variations",
    "is_recruiting",
    "sort_studies",
]
