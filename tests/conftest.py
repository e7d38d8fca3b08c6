"""Shared fixtures: small fee-schedule and Addendum B trees under ``tmp_path``."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

os.environ.setdefault("RATESUITE_SKIP_DOTENV", "1")

from app.rates.groups import CodeGroup
from config.settings import RateSettings

FEE_HEADER = [
    "HCPCS Code",
    "Work RVU",
    "Fully Implemented Facility PE RVU",
    "Transitioned Facility PE RVU",
    "Fully Implemented Non-FAC PE RVU",
    "Transitioned Non-FAC PE RVU",
    "MP RVU",
    "Conv Fact",
]

GROUP_618 = CodeGroup("618", ("61885", "61888", "61889", "61891", "61892"))


def _csv_line(cells) -> str:
    return ",".join(f'"{cell}"' for cell in cells)


def write_fee_schedule(data_dir: Path, group: CodeGroup, year: str, rows) -> Path:
    path = group.path_for(data_dir, year)
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [_csv_line(FEE_HEADER)] + [_csv_line(row) for row in rows]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def write_payment_file(payment_dir: Path, name: str, rows) -> Path:
    payment_dir.mkdir(parents=True, exist_ok=True)
    path = payment_dir / name
    lines = [_csv_line(["HCPCS Code", "Short Descriptor", "Payment Rate"])]
    lines += [_csv_line([code, "desc", rate]) for code, rate in rows]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def rate_tree(tmp_path: Path) -> dict[str, Path]:
    """Group 618 for 2023 and 2024A (2024B missing), payments for 2023 and 2024."""
    data_dir = tmp_path / "data"
    payment_dir = tmp_path / "data" / "AB"

    write_fee_schedule(
        data_dir,
        GROUP_618,
        "2023",
        [
            ["61885", "6.05", "6.76", "", "7.10", "", "2.12", "36.0896"],
            ["61888", "10.00", "0", "5.00", "", "", "1.00", "10.0"],
        ],
    )
    write_fee_schedule(
        data_dir,
        GROUP_618,
        "2024A",
        [
            ["61885", "6.05", "6.76", "", "7.10", "", "2.12", "40.0"],
            ["61888", "10.00", "0", "5.00", "", "", "1.00", "12.0"],
        ],
    )
    write_payment_file(payment_dir, "2023_january_addendum_b.csv", [("61885", "$1,000.00")])
    write_payment_file(
        payment_dir,
        "2024_addendum_b.csv",
        [("61885", "$1,200.00"), ("61888", "0")],
    )
    return {"data_dir": data_dir, "payment_dir": payment_dir}


@pytest.fixture
def rate_settings(rate_tree: dict[str, Path]) -> RateSettings:
    return RateSettings(
        data_dir=rate_tree["data_dir"],
        payment_dir=rate_tree["payment_dir"],
        years=["2023", "2024A", "2024B"],
    )
