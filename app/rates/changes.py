"""Year-over-year percentage change with explicit null and zero-baseline policy."""

from __future__ import annotations

import math
from typing import Mapping, Sequence

from .calculator import round_cents
from .years import period_label

YearRates = Mapping[str, Mapping[str, float]]


def percentage_change(prev: float | None, curr: float | None) -> float | None:
    """``round(100 * (curr - prev) / prev, 2)``.

    ``None`` when either side is missing or NaN; ``0`` when the baseline is
    exactly zero (no division, never infinity).
    """
    if prev is None or curr is None:
        return None
    if math.isnan(prev) or math.isnan(curr):
        return None
    if prev == 0:
        return 0.0
    return round_cents(((curr - prev) / prev) * 100)


def consecutive_periods(years: Sequence[str]) -> list[tuple[str, str]]:
    return [(years[i - 1], years[i]) for i in range(1, len(years))]


def all_codes(rates: YearRates) -> list[str]:
    """Union of codes over every year, in first-seen order."""
    seen: dict[str, None] = {}
    for code_rates in rates.values():
        for code in code_rates:
            seen.setdefault(code, None)
    return list(seen)


def yearly_changes(rates: YearRates, years: Sequence[str]) -> dict[str, dict[str, float | None]]:
    """``code -> "<prev> to <curr>" -> change`` over consecutive ``years``.

    A code missing from either year of a pair gets no entry for that pair.
    """
    changes: dict[str, dict[str, float | None]] = {}
    periods = consecutive_periods(years)
    for code in all_codes(rates):
        row: dict[str, float | None] = {}
        for prev_year, curr_year in periods:
            prev_rates = rates.get(prev_year) or {}
            curr_rates = rates.get(curr_year) or {}
            if code not in prev_rates or code not in curr_rates:
                continue
            row[period_label(prev_year, curr_year)] = percentage_change(
                prev_rates[code], curr_rates[code]
            )
        changes[code] = row
    return changes


__all__ = ["all_codes", "consecutive_periods", "percentage_change", "yearly_changes"]
