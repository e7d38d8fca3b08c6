"""Reconcile RVU-derived reimbursement rates with Addendum B payment rates.

Both indexes (``by_group`` and ``by_code``) are derived views over one list of
:class:`CombinedRecord` built in a single pass; neither is mutated afterwards.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from .calculator import round_cents
from .changes import consecutive_periods, percentage_change
from .years import period_label, resolve_payment_year, sort_years

logger = logging.getLogger(__name__)

GroupRates = Mapping[str, Mapping[str, Mapping[str, float]]]
PaymentRates = Mapping[str, Mapping[str, float]]


@dataclass(frozen=True)
class CombinedEntry:
    reimbursement: float | None
    payment: float | None
    combined: float | None

    @classmethod
    def from_rates(cls, reimbursement: float | None, payment: float | None) -> "CombinedEntry":
        if (
            reimbursement is not None
            and payment is not None
            and math.isfinite(reimbursement)
            and math.isfinite(payment)
        ):
            combined: float | None = round_cents(reimbursement + payment)
        else:
            # No payment: the combined figure degrades to the reimbursement alone.
            combined = reimbursement
        return cls(reimbursement=reimbursement, payment=payment, combined=combined)

    def to_dict(self) -> dict[str, float | None]:
        return {
            "reimbursement": self.reimbursement,
            "payment": self.payment,
            "combined": self.combined,
        }


@dataclass(frozen=True)
class CombinedChange:
    reimbursement: float | None = None
    payment: float | None = None
    combined: float | None = None

    @classmethod
    def between(cls, prev: CombinedEntry | None, curr: CombinedEntry | None) -> "CombinedChange":
        if prev is None or curr is None:
            return cls()
        return cls(
            reimbursement=percentage_change(prev.reimbursement, curr.reimbursement),
            payment=percentage_change(prev.payment, curr.payment),
            combined=percentage_change(prev.combined, curr.combined),
        )

    def to_dict(self) -> dict[str, float | None]:
        return {
            "reimbursement": self.reimbursement,
            "payment": self.payment,
            "combined": self.combined,
        }


@dataclass(frozen=True)
class CombinedRecord:
    group: str
    year: str
    code: str
    entry: CombinedEntry
    payment_year: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {**self.entry.to_dict(), "group": self.group}


@dataclass(frozen=True)
class CombinedRates:
    records: tuple[CombinedRecord, ...]
    by_group: dict[str, dict[str, dict[str, CombinedEntry]]]
    changes: dict[str, dict[str, dict[str, CombinedChange]]]
    by_code: dict[str, dict[str, CombinedRecord]]

    def group_years(self, group: str) -> list[str]:
        return sort_years(self.by_group.get(group, {}))

    def group_view(self, group: str) -> dict[str, Any] | None:
        if group not in self.by_group:
            return None
        return self._group_dict(group)

    def code_view(self, code: str) -> dict[str, Any] | None:
        years = self.by_code.get(code)
        if years is None:
            return None
        return {year: record.to_dict() for year, record in years.items()}

    def _group_dict(self, group: str) -> dict[str, Any]:
        view: dict[str, Any] = {
            year: {code: entry.to_dict() for code, entry in self.by_group[group][year].items()}
            for year in self.group_years(group)
        }
        view["changes"] = {
            code: {period: change.to_dict() for period, change in periods.items()}
            for code, periods in self.changes.get(group, {}).items()
        }
        return view

    def to_dict(self) -> dict[str, Any]:
        return {
            "by_group": {group: self._group_dict(group) for group in self.by_group},
            "by_code": {code: self.code_view(code) for code in self.by_code},
        }


def combined_changes(
    group_entries: Mapping[str, Mapping[str, CombinedEntry]],
) -> dict[str, dict[str, CombinedChange]]:
    """Change rows over the group's populated years in chronological order.

    Unlike the reimbursement-only table, a code missing from either side of a
    pair gets an explicit all-null entry.
    """
    years = sort_years(group_entries)
    codes: dict[str, None] = {}
    for year in years:
        for code in group_entries[year]:
            codes.setdefault(code, None)

    changes: dict[str, dict[str, CombinedChange]] = {}
    for code in codes:
        row: dict[str, CombinedChange] = {}
        for prev_year, curr_year in consecutive_periods(years):
            row[period_label(prev_year, curr_year)] = CombinedChange.between(
                group_entries[prev_year].get(code),
                group_entries[curr_year].get(code),
            )
        changes[code] = row
    return changes


def reconcile(
    reimbursement: GroupRates,
    payments: PaymentRates,
    year_map: Mapping[str, Sequence[str]] | None = None,
) -> CombinedRates:
    """Join ``group -> year -> code -> rate`` with ``year -> code -> payment``.

    The payment year for each reimbursement year is the first candidate in
    ``year_map`` present in ``payments``. Groups are visited in the given order,
    so when a code sits in several groups the later group owns ``by_code``.
    """
    records: list[CombinedRecord] = []
    by_group: dict[str, dict[str, dict[str, CombinedEntry]]] = {}
    by_code: dict[str, dict[str, CombinedRecord]] = {}

    for group, year_rates in reimbursement.items():
        group_entries = by_group.setdefault(group, {})
        for year, code_rates in year_rates.items():
            if not code_rates:
                continue
            payment_year = resolve_payment_year(year, payments.keys(), year_map)
            year_payments = payments.get(payment_year, {}) if payment_year else {}
            if payment_year is None:
                logger.debug("No payment data for group %s year %s", group, year)

            for code, rate in code_rates.items():
                entry = CombinedEntry.from_rates(rate, year_payments.get(code))
                record = CombinedRecord(group, year, code, entry, payment_year)
                records.append(record)
                group_entries.setdefault(year, {})[code] = entry
                by_code.setdefault(code, {})[year] = record

    changes = {group: combined_changes(entries) for group, entries in by_group.items()}
    return CombinedRates(
        records=tuple(records),
        by_group=by_group,
        changes=changes,
        by_code=by_code,
    )


__all__ = [
    "CombinedChange",
    "CombinedEntry",
    "CombinedRates",
    "CombinedRecord",
    "combined_changes",
    "reconcile",
]
