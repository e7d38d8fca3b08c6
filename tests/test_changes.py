"""Tests for year-over-year percentage change."""

import pytest

from app.rates.changes import percentage_change, yearly_changes


def test_percentage_change_values():
    assert percentage_change(100, 110) == 10.0
    assert percentage_change(200, 150) == -25.0
    assert percentage_change(3, 4) == 33.33


def test_zero_baseline_is_zero():
    assert percentage_change(0, 50) == 0.0
    assert percentage_change(0.0, 0.0) == 0.0


def test_missing_operands_are_null():
    assert percentage_change(None, 10) is None
    assert percentage_change(10, None) is None
    assert percentage_change(float("nan"), 10) is None


def test_code_missing_from_a_year_has_no_entry():
    rates = {
        "2022": {"61885": 100.0},
        "2023": {"61885": 110.0, "61888": 50.0},
        "2024A": {"61888": 40.0},
    }
    changes = yearly_changes(rates, ["2022", "2023", "2024A"])
    assert changes["61885"] == {"2022 to 2023": 10.0}
    assert changes["61888"] == {"2023 to 2024A": -20.0}


def test_empty_year_produces_no_entries():
    rates = {"2022": {"61885": 100.0}, "2023": {}}
    assert yearly_changes(rates, ["2022", "2023"]) == {"61885": {}}


def test_extreme_ratio_does_not_raise():
    assert percentage_change(0.01, 1e25) == pytest.approx(1e29)


def test_tiny_decrease_rounds_to_unsigned_zero():
    change = percentage_change(100000.00, 99999.99)
    assert change == 0.0
    assert str(change) == "0.0"
