"""Tests for Addendum B payment loading."""

import logging

from app.rates.payments import load_payment_series

from .conftest import write_payment_file


def test_loads_target_codes_by_inferred_year(rate_tree):
    payments = load_payment_series(rate_tree["payment_dir"])
    assert payments == {
        "2023": {"61885": 1000.0},
        "2024": {"61885": 1200.0, "61888": 0.0},
    }


def test_duplicate_rows_last_write_wins(tmp_path):
    write_payment_file(
        tmp_path,
        "2025_addendum_b.csv",
        [("61885", "$100.00"), ("61885", "$150.00"), ("99999", "$5.00")],
    )
    payments = load_payment_series(tmp_path, {"61885"})
    assert payments == {"2025": {"61885": 150.0}}


def test_later_file_overwrites_same_year(tmp_path):
    write_payment_file(tmp_path, "a_2022.csv", [("61885", "10")])
    write_payment_file(tmp_path, "b_2022.csv", [("61885", "20")])
    assert load_payment_series(tmp_path, {"61885"}) == {"2022": {"61885": 20.0}}


def test_year_key_created_without_target_codes(tmp_path):
    write_payment_file(tmp_path, "2021_january_ab.CSV", [("00000", "$1.00")])
    (tmp_path / "readme.txt").write_text("not a payment file", encoding="utf-8")
    assert load_payment_series(tmp_path, {"61885"}) == {"2021": {}}


def test_unparseable_payment_is_skipped(tmp_path):
    write_payment_file(tmp_path, "2023_ab.csv", [("61885", "$10.00"), ("61885", "N/A")])
    assert load_payment_series(tmp_path, {"61885"}) == {"2023": {"61885": 10.0}}


def test_missing_directory_is_empty(tmp_path, caplog):
    with caplog.at_level(logging.WARNING, logger="app.rates.payments"):
        assert load_payment_series(tmp_path / "missing") == {}
    assert "not found" in caplog.text
