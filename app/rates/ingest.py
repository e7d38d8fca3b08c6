"""CSV ingestion and numeric normalization for fee-schedule and payment files.

Source files come from several CMS downloads and are not consistent: headers
may be quoted or padded, currency columns carry "$" and thousands separators,
and some exports repeat the header row as the first data row. Everything here
returns plain ``str`` cells; numeric coercion happens through
:func:`parse_currency` / :func:`parse_ratio` at the record boundary so the
calculators only ever see floats.
"""

from __future__ import annotations

import csv
import io
import logging
import math
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

HCPCS_FIELD = "HCPCS Code"

Row = dict[str, str]


def _strip_quotes(value: str) -> str:
    value = value.strip()
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value.strip()


def clean_header(name: str) -> str:
    return _strip_quotes(name.replace("\ufeff", ""))


def clean_value(value: str) -> str:
    return _strip_quotes(value)


def _to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = _strip_quotes(str(value))
        negative = text.startswith("-")
        if negative:
            text = text[1:].lstrip()
        if text.startswith("$"):
            text = text[1:]
        text = text.replace(",", "").strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
        if negative:
            number = -number
    return number if math.isfinite(number) else None


def parse_currency(value: Any, default: float | None = 0.0) -> float | None:
    """Parse "$1,234.50"-style text. Returns ``default`` for blank/non-numeric/non-finite."""
    number = _to_float(value)
    return default if number is None else number


def parse_ratio(value: Any, default: float = 0.0) -> float:
    """Parse an RVU, GPCI or conversion-factor cell, falling back to ``default``."""
    number = _to_float(value)
    return default if number is None else number


def parse_csv_text(text: str, *, code_field: str = HCPCS_FIELD) -> list[Row]:
    """Parse CSV text into header-keyed rows.

    Blank lines are skipped, short rows keep the cells they have and surplus
    cells are discarded. A first data row that repeats the header (its code
    column equals ``code_field``) is dropped.
    """
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")), skipinitialspace=True)
    header: list[str] | None = None
    rows: list[Row] = []

    for raw in reader:
        if not raw or all(not cell.strip() for cell in raw):
            continue
        if header is None:
            header = [clean_header(cell) for cell in raw]
            continue
        row = {name: clean_value(cell) for name, cell in zip(header, raw) if name}
        rows.append(row)

    if rows and rows[0].get(code_field) == code_field:
        rows = rows[1:]
    return rows


def load_csv_rows(path: Path, *, code_field: str = HCPCS_FIELD) -> list[Row]:
    """Read and parse ``path``. Raises ``FileNotFoundError`` when it does not exist."""
    text = Path(path).read_text(encoding="utf-8-sig", errors="replace")
    rows = parse_csv_text(text, code_field=code_field)
    if not rows:
        logger.warning("No data rows found in %s", path)
    return rows


__all__ = [
    "HCPCS_FIELD",
    "Row",
    "clean_header",
    "clean_value",
    "load_csv_rows",
    "parse_csv_text",
    "parse_currency",
    "parse_ratio",
]
