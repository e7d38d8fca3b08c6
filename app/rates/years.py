"""Year labels used across fee-schedule and payment sources.

A label is usually a calendar year ("2023") but some periods are split into
halves ("2024A", "2024B"), each with its own fee-schedule file. Payment files
are published per calendar year, so reconciliation maps each canonical label
to an ordered list of candidate payment-source labels.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Iterable, Mapping, Sequence

UNKNOWN_YEAR = "unknown"

PAYMENT_YEAR_MAP: Mapping[str, tuple[str, ...]] = {
    "2020": ("2020",),
    "2021": ("2021",),
    "2022": ("2022",),
    "2023": ("2023",),
    "2024A": ("2024", "2024A"),
    "2024B": ("2024", "2024B"),
    "2025": ("2025",),
}

# Irregular historical payment filenames, checked before the generic regex.
# Order matters: the first matching rule wins.
_FILENAME_PREFIX_RULES: tuple[tuple[str, str], ...] = (
    ("2020_january", "2020"),
    ("2021_january", "2021"),
    ("2023_january", "2023"),
)
_FILENAME_SUBSTRING_RULES: tuple[tuple[str, str], ...] = (
    ("2025", "2025"),
    ("2022", "2022"),
    ("2024", "2024"),
)
_YEAR_RE = re.compile(r"20\d\d")


@total_ordering
@dataclass(frozen=True)
class YearLabel:
    """Opaque year label ordered by its 4-digit prefix, then lexically."""

    label: str

    @property
    def numeric_prefix(self) -> int | None:
        head = self.label[:4]
        return int(head) if len(head) == 4 and head.isdigit() else None

    def sort_key(self) -> tuple[int, int, str]:
        prefix = self.numeric_prefix
        # Labels without a numeric prefix ("unknown") sort after every real year.
        if prefix is None:
            return (1, 0, self.label)
        return (0, prefix, self.label)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, YearLabel):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __str__(self) -> str:
        return self.label


def sort_years(years: Iterable[str]) -> list[str]:
    """Chronological order: numeric prefix ascending, ties by full label."""
    return sorted(years, key=lambda y: YearLabel(y).sort_key())


def payment_year_candidates(
    year: str, mapping: Mapping[str, Sequence[str]] | None = None
) -> tuple[str, ...]:
    table = PAYMENT_YEAR_MAP if mapping is None else mapping
    return tuple(table.get(year, (year,)))


def resolve_payment_year(
    year: str,
    available: Iterable[str],
    mapping: Mapping[str, Sequence[str]] | None = None,
) -> str | None:
    """Return the first candidate payment year present in ``available``."""
    present = set(available)
    for candidate in payment_year_candidates(year, mapping):
        if candidate in present:
            return candidate
    return None


def year_from_payment_filename(filename: str) -> str:
    """Infer the payment year a (possibly irregular) Addendum B filename covers."""
    for prefix, year in _FILENAME_PREFIX_RULES:
        if filename.startswith(prefix):
            return year
    for needle, year in _FILENAME_SUBSTRING_RULES:
        if needle in filename:
            return year

    match = _YEAR_RE.search(filename)
    if match:
        return match.group(0)
    return UNKNOWN_YEAR


def period_label(prev_year: str, curr_year: str) -> str:
    return f"{prev_year} to {curr_year}"


__all__ = [
    "PAYMENT_YEAR_MAP",
    "UNKNOWN_YEAR",
    "YearLabel",
    "payment_year_candidates",
    "period_label",
    "resolve_payment_year",
    "sort_years",
    "year_from_payment_filename",
]
