"""Medicare physician fee-schedule reimbursement formula.

    rate = [(Work RVU x Work GPCI) + (PE RVU x PE GPCI) + (MP RVU x MP GPCI)] x CF

rounded to cents. GPCIs default to 1.0 (national) when a file omits them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Literal, Mapping

from .ingest import HCPCS_FIELD, parse_ratio

FacilityType = Literal["facility", "non-facility"]

_CENT = Decimal("0.01")
# Enough digits to quantize any finite float (max ~309 integer digits) to cents.
_CENT_PRECISION = 400


def round_cents(value: float) -> float:
    """Round half-up to 2 places on the exact binary value; non-finite -> 0.0.

    Negative zero is normalized to 0.0.
    """
    if value is None or not math.isfinite(value):
        return 0.0
    with localcontext() as ctx:
        ctx.prec = _CENT_PRECISION
        rounded = Decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)
    return float(rounded) + 0.0


@dataclass(frozen=True)
class FeeScheduleRecord:
    hcpcs_code: str
    work_rvu: float = 0.0
    facility_pe_rvu: float = 0.0
    transitioned_facility_pe_rvu: float = 0.0
    non_facility_pe_rvu: float = 0.0
    transitioned_non_facility_pe_rvu: float = 0.0
    mp_rvu: float = 0.0
    work_gpci: float = 1.0
    pe_gpci: float = 1.0
    mp_gpci: float = 1.0
    conversion_factor: float = 0.0

    @classmethod
    def from_row(cls, row: Mapping[str, str]) -> "FeeScheduleRecord":
        return cls(
            hcpcs_code=(row.get(HCPCS_FIELD) or "").strip(),
            work_rvu=parse_ratio(row.get("Work RVU")),
            facility_pe_rvu=parse_ratio(row.get("Fully Implemented Facility PE RVU")),
            transitioned_facility_pe_rvu=parse_ratio(row.get("Transitioned Facility PE RVU")),
            non_facility_pe_rvu=parse_ratio(row.get("Fully Implemented Non-FAC PE RVU")),
            transitioned_non_facility_pe_rvu=parse_ratio(row.get("Transitioned Non-FAC PE RVU")),
            mp_rvu=parse_ratio(row.get("MP RVU")),
            work_gpci=parse_ratio(row.get("GPCI Work"), default=1.0),
            pe_gpci=parse_ratio(row.get("GPCI PE"), default=1.0),
            mp_gpci=parse_ratio(row.get("GPCI MP"), default=1.0),
            conversion_factor=parse_ratio(row.get("Conv Fact")),
        )

    def pe_rvu(self, facility_type: FacilityType = "facility") -> float:
        # A fully-implemented value of exactly 0 is treated as "not populated" and
        # the transitioned value is used instead. Known approximation: a genuine 0
        # cannot be told apart from a missing one in the source files.
        if facility_type == "facility":
            return self.facility_pe_rvu or self.transitioned_facility_pe_rvu
        return self.non_facility_pe_rvu or self.transitioned_non_facility_pe_rvu


def calculate_rate(
    work_rvu: float,
    pe_rvu: float,
    mp_rvu: float,
    conversion_factor: float,
    *,
    work_gpci: float = 1.0,
    pe_gpci: float = 1.0,
    mp_gpci: float = 1.0,
) -> float:
    """Apply the RVU formula to raw inputs (no file ingestion)."""
    weighted = (work_rvu * work_gpci) + (pe_rvu * pe_gpci) + (mp_rvu * mp_gpci)
    return round_cents(weighted * conversion_factor)


def calculate_reimbursement_rate(
    record: FeeScheduleRecord, facility_type: FacilityType = "facility"
) -> float:
    return calculate_rate(
        record.work_rvu,
        record.pe_rvu(facility_type),
        record.mp_rvu,
        record.conversion_factor,
        work_gpci=record.work_gpci,
        pe_gpci=record.pe_gpci,
        mp_gpci=record.mp_gpci,
    )


__all__ = [
    "FacilityType",
    "FeeScheduleRecord",
    "calculate_rate",
    "calculate_reimbursement_rate",
    "round_cents",
]
