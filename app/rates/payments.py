"""Load hospital outpatient (Addendum B) payment rates keyed by year and code."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from .groups import TARGET_PAYMENT_CODES
from .ingest import HCPCS_FIELD, load_csv_rows, parse_currency
from .years import year_from_payment_filename

logger = logging.getLogger(__name__)

PAYMENT_RATE_FIELD = "Payment Rate"
PAYMENT_FILE_SUFFIXES = (".csv",)

PaymentSeries = dict[str, dict[str, float]]


def _payment_files(payment_dir: Path) -> list[Path]:
    return sorted(
        (path for path in payment_dir.iterdir() if path.suffix.lower() in PAYMENT_FILE_SUFFIXES),
        key=lambda path: path.name,
    )


def load_payment_series(
    payment_dir: Path,
    target_codes: Iterable[str] = TARGET_PAYMENT_CODES,
) -> PaymentSeries:
    """Return ``year -> code -> payment rate`` for the codes in ``target_codes``.

    Files are visited in filename order and later rows overwrite earlier ones for
    the same (year, code). Every processed file creates its year key even when it
    carries none of the target codes. A missing directory yields ``{}``.
    """
    payment_dir = Path(payment_dir)
    if not payment_dir.is_dir():
        logger.warning("Payment directory not found: %s", payment_dir)
        return {}

    targets = frozenset(code.strip() for code in target_codes)
    results: PaymentSeries = {}

    for path in _payment_files(payment_dir):
        year = year_from_payment_filename(path.name)
        logger.info("Processing payment file for year %s: %s", year, path.name)
        try:
            rows = load_csv_rows(path)
        except (OSError, UnicodeError) as exc:
            logger.error("Could not read payment file %s: %s", path, exc)
            continue

        year_rates = results.setdefault(year, {})
        for row in rows:
            code = (row.get(HCPCS_FIELD) or "").strip()
            if not code or code not in targets:
                continue
            rate = parse_currency(row.get(PAYMENT_RATE_FIELD), default=None)
            if rate is None:
                continue
            year_rates[code] = rate

    return results


__all__ = ["PAYMENT_RATE_FIELD", "PaymentSeries", "load_payment_series"]
