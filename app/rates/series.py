"""Build ``year -> code -> rate`` series for each code group from fee-schedule files."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

from .calculator import FacilityType, FeeScheduleRecord, calculate_reimbursement_rate
from .changes import yearly_changes
from .groups import CodeGroup
from .ingest import HCPCS_FIELD, Row, load_csv_rows

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroupSeries:
    """Reimbursement rates for one code group across the analysis years."""

    group: str
    years: tuple[str, ...]
    rates: dict[str, dict[str, float]]
    changes: dict[str, dict[str, float | None]]
    records: dict[str, list[Row]] = field(default_factory=dict, repr=False)

    def populated_years(self) -> list[str]:
        return [year for year in self.years if self.rates.get(year)]

    def codes(self) -> list[str]:
        return sorted({code for code_rates in self.rates.values() for code in code_rates})

    def to_dict(self) -> dict[str, Any]:
        return {
            "years": list(self.years),
            "rates": {year: dict(self.rates.get(year, {})) for year in self.years},
            "changes": {code: dict(row) for code, row in self.changes.items()},
        }


@dataclass(frozen=True)
class ReimbursementSeries:
    """All code groups, in group order, computed with one facility setting."""

    facility_type: FacilityType
    years: tuple[str, ...]
    groups: dict[str, GroupSeries]

    def rates_by_group(self) -> dict[str, dict[str, dict[str, float]]]:
        return {name: series.rates for name, series in self.groups.items()}

    def get(self, group: str) -> GroupSeries | None:
        return self.groups.get(group)

    def to_dict(self) -> dict[str, Any]:
        return {name: series.to_dict() for name, series in self.groups.items()}


def build_year_series(
    group: CodeGroup,
    years: Sequence[str],
    data_dir: Path,
    facility_type: FacilityType = "facility",
) -> tuple[dict[str, dict[str, float]], dict[str, list[Row]]]:
    """Load each year's file for ``group`` and compute a rate per code.

    Years are visited in the order given. A missing file yields an empty map for
    that year; any other I/O error propagates.
    """
    rates: dict[str, dict[str, float]] = {}
    records: dict[str, list[Row]] = {}

    for year in years:
        path = group.path_for(Path(data_dir), year)
        try:
            rows = load_csv_rows(path)
        except FileNotFoundError:
            logger.warning("Fee schedule not found for group %s year %s: %s", group.name, year, path)
            rates[year] = {}
            records[year] = []
            continue

        year_rates: dict[str, float] = {}
        for row in rows:
            record = FeeScheduleRecord.from_row(row)
            if not record.hcpcs_code or record.hcpcs_code == HCPCS_FIELD:
                continue
            year_rates[record.hcpcs_code] = calculate_reimbursement_rate(record, facility_type)

        logger.debug("Group %s year %s: %d codes", group.name, year, len(year_rates))
        rates[year] = year_rates
        records[year] = rows

    return rates, records


def build_group_series(
    group: CodeGroup,
    years: Sequence[str],
    data_dir: Path,
    facility_type: FacilityType = "facility",
) -> GroupSeries:
    rates, records = build_year_series(group, years, data_dir, facility_type)
    return GroupSeries(
        group=group.name,
        years=tuple(years),
        rates=rates,
        changes=yearly_changes(rates, years),
        records=records,
    )


def calculate_all_reimbursements(
    groups: Sequence[CodeGroup],
    years: Sequence[str],
    data_dir: Path,
    facility_type: FacilityType = "facility",
) -> ReimbursementSeries:
    series: dict[str, GroupSeries] = {}
    for group in groups:
        logger.info("Processing code group %s", group.name)
        series[group.name] = build_group_series(group, years, data_dir, facility_type)
    return ReimbursementSeries(facility_type=facility_type, years=tuple(years), groups=series)


__all__ = [
    "GroupSeries",
    "ReimbursementSeries",
    "build_group_series",
    "build_year_series",
    "calculate_all_reimbursements",
]
