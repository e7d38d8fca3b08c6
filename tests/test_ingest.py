"""Tests for CSV parsing and numeric coercion at the ingestion boundary."""

from pathlib import Path

import pytest

from app.rates.ingest import load_csv_rows, parse_csv_text, parse_currency, parse_ratio


def test_headers_and_values_are_trimmed_and_unquoted():
    text = '\ufeff "HCPCS Code" , "Work RVU"\n "61885" , " 6.05 "\n'
    rows = parse_csv_text(text)
    assert rows == [{"HCPCS Code": "61885", "Work RVU": "6.05"}]


def test_repeated_header_row_is_dropped():
    text = "HCPCS Code,Work RVU\nHCPCS Code,Work RVU\n61885,6.05\n"
    rows = parse_csv_text(text)
    assert [row["HCPCS Code"] for row in rows] == ["61885"]


def test_blank_lines_skipped_and_short_rows_tolerated():
    text = "HCPCS Code,Work RVU,MP RVU\n\n61885,6.05\n\n61888,1,2,surplus\n"
    rows = parse_csv_text(text)
    assert rows[0] == {"HCPCS Code": "61885", "Work RVU": "6.05"}
    assert rows[1] == {"HCPCS Code": "61888", "Work RVU": "1", "MP RVU": "2"}


def test_header_only_file_yields_no_rows(tmp_path: Path):
    path = tmp_path / "empty.csv"
    path.write_text("HCPCS Code,Work RVU\n", encoding="utf-8")
    assert load_csv_rows(path) == []


def test_missing_file_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_csv_rows(tmp_path / "nope.csv")


def test_codes_stay_strings():
    rows = parse_csv_text("HCPCS Code\n0001A\n00123\n")
    assert [row["HCPCS Code"] for row in rows] == ["0001A", "00123"]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("$1,234.50", 1234.5),
        ('"$1,000"', 1000.0),
        ("-$12.25", -12.25),
        ("0", 0.0),
        ("", None),
        ("n/a", None),
        (None, None),
        ("inf", None),
    ],
)
def test_parse_currency(raw, expected):
    assert parse_currency(raw, default=None) == expected


def test_parse_ratio_defaults():
    assert parse_ratio("", default=1.0) == 1.0
    assert parse_ratio("abc") == 0.0
    assert parse_ratio("1.032", default=1.0) == 1.032
