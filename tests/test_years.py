"""Tests for year labels, ordering and payment-year inference."""

import pytest

from app.rates.years import (
    UNKNOWN_YEAR,
    YearLabel,
    payment_year_candidates,
    resolve_payment_year,
    sort_years,
    year_from_payment_filename,
)


def test_sort_years_orders_halves_and_unknown_last():
    years = ["2025", UNKNOWN_YEAR, "2024B", "2024A", "2020", "2024"]
    assert sort_years(years) == ["2020", "2024", "2024A", "2024B", "2025", UNKNOWN_YEAR]


def test_year_label_comparison():
    assert YearLabel("2023") < YearLabel("2024A")
    assert YearLabel("2024B") < YearLabel("unknown")


def test_candidates_for_split_years():
    assert payment_year_candidates("2024A") == ("2024", "2024A")
    assert payment_year_candidates("2024B") == ("2024", "2024B")
    assert payment_year_candidates("2019") == ("2019",)


def test_resolve_prefers_first_present_candidate():
    assert resolve_payment_year("2024A", ["2024"]) == "2024"
    assert resolve_payment_year("2024A", ["2024A", "2024"]) == "2024"
    assert resolve_payment_year("2024B", ["2024B"]) == "2024B"
    assert resolve_payment_year("2022", ["2023"]) is None


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("2020_january_web_addendum_b.csv", "2020"),
        ("2021_january_addendum_b_2022.csv", "2021"),
        ("2023_january_web_addendum_b.csv", "2023"),
        ("addendum_b_2022_2025.csv", "2025"),
        ("october_2024_addendum_b.csv", "2024"),
        ("addendum_b_2019.csv", "2019"),
        ("addendum_b.csv", UNKNOWN_YEAR),
    ],
)
def test_year_from_payment_filename(filename, expected):
    assert year_from_payment_filename(filename) == expected
