"""Read-only views over computed rate snapshots (per-code history, group trends)."""

from __future__ import annotations

from typing import Any, Mapping

from .calculator import round_cents
from .ingest import Row
from .reconcile import CombinedRates
from .series import ReimbursementSeries


def code_history(
    reimbursement: ReimbursementSeries,
    payments: Mapping[str, Mapping[str, float]],
    combined: CombinedRates,
    code: str,
) -> dict[str, Any] | None:
    """Everything known about one code, or ``None`` if it appears nowhere."""
    history: dict[str, Any] = {"reimbursement": {}, "payment": {}, "combined": {}, "changes": {}}

    for series in reimbursement.groups.values():
        for year in series.years:
            rate = series.rates.get(year, {}).get(code)
            if rate is not None:
                history["reimbursement"][year] = rate
        if code in series.changes:
            history["changes"] = dict(series.changes[code])

    for year, year_payments in payments.items():
        if code in year_payments:
            history["payment"][year] = year_payments[code]

    history["combined"] = combined.code_view(code) or {}

    if not (history["reimbursement"] or history["payment"] or history["combined"]):
        return None
    return history


def group_trends(reimbursement: ReimbursementSeries) -> dict[str, Any]:
    groups: dict[str, Any] = {}
    for name, series in reimbursement.groups.items():
        years: dict[str, dict[str, float]] = {}
        averages: dict[str, float] = {}
        for year in series.years:
            rates = series.rates.get(year, {})
            years[year] = dict(rates)
            averages[year] = round_cents(sum(rates.values()) / len(rates)) if rates else 0.0
        groups[name] = {"years": years, "average_by_year": averages}
    return {"code_groups": groups}


def hcpcs_rows(
    reimbursement: ReimbursementSeries, group: str | None = None
) -> dict[str, dict[str, list[Row]]] | None:
    """Normalized source rows per group per year; ``None`` for an unknown group."""
    if group is not None:
        series = reimbursement.get(group)
        if series is None:
            return None
        return {group: {year: list(series.records.get(year, [])) for year in series.years}}
    return {
        name: {year: list(series.records.get(year, [])) for year in series.years}
        for name, series in reimbursement.groups.items()
    }


def code_slice(
    reimbursement: ReimbursementSeries,
    payments: Mapping[str, Mapping[str, float]],
    combined: CombinedRates,
    code: str,
) -> dict[str, Any] | None:
    """Reimbursement, payment and combined values for one code, by year."""
    history = code_history(reimbursement, payments, combined, code)
    if history is None:
        return None
    return {key: history[key] for key in ("reimbursement", "payment", "combined")}


def group_slice(
    reimbursement: ReimbursementSeries, combined: CombinedRates, group: str
) -> dict[str, Any] | None:
    series = reimbursement.get(group)
    if series is None:
        return None
    return {
        "rows": {year: list(series.records.get(year, [])) for year in series.years},
        "reimbursement": series.to_dict(),
        "combined": combined.group_view(group) or {},
    }


__all__ = ["code_history", "code_slice", "group_slice", "group_trends", "hcpcs_rows"]
