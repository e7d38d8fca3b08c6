"""Tests for per-group year series built from fee-schedule files."""

import logging

from app.rates.series import build_year_series, calculate_all_reimbursements

from .conftest import GROUP_618, write_fee_schedule


def test_rates_per_year_in_caller_order(rate_tree):
    rates, records = build_year_series(GROUP_618, ["2024A", "2023"], rate_tree["data_dir"])
    assert list(rates) == ["2024A", "2023"]
    assert rates["2023"] == {"61885": 538.82, "61888": 160.0}
    assert rates["2024A"] == {"61885": 597.2, "61888": 192.0}
    assert [row["HCPCS Code"] for row in records["2023"]] == ["61885", "61888"]


def test_missing_file_gives_empty_year_and_warning(rate_tree, caplog):
    with caplog.at_level(logging.WARNING, logger="app.rates.series"):
        rates, records = build_year_series(GROUP_618, ["2023", "2024B"], rate_tree["data_dir"])
    assert rates["2024B"] == {}
    assert records["2024B"] == []
    assert "2024B" in caplog.text


def test_rows_without_code_are_skipped(tmp_path):
    write_fee_schedule(
        tmp_path,
        GROUP_618,
        "2022",
        [
            ["", "1", "1", "", "", "", "1", "10"],
            ["61885", "1", "1", "", "", "", "1", "10"],
        ],
    )
    rates, _ = build_year_series(GROUP_618, ["2022"], tmp_path)
    assert rates["2022"] == {"61885": 30.0}


def test_changes_skip_missing_years(rate_tree):
    series = calculate_all_reimbursements([GROUP_618], ["2023", "2024A", "2024B"], rate_tree["data_dir"])
    group = series.get("618")
    assert group.populated_years() == ["2023", "2024A"]
    assert group.changes["61888"] == {"2023 to 2024A": 20.0}
    assert group.changes["61885"] == {"2023 to 2024A": 10.83}
    assert series.get("645") is None


def test_non_facility_selector(rate_tree):
    series = calculate_all_reimbursements(
        [GROUP_618], ["2023"], rate_tree["data_dir"], facility_type="non-facility"
    )
    # 61885 uses the non-facility PE column (7.10).
    assert series.get("618").rates["2023"]["61885"] == 551.09
    assert series.to_dict()["618"]["years"] == ["2023"]
