"""Tests for joining reimbursement and payment series."""

from app.rates.reconcile import CombinedChange, CombinedEntry, reconcile


def test_split_year_uses_calendar_payment_year():
    combined = reconcile({"618": {"2024A": {"61885": 100.0}}}, {"2024": {"61885": 50.0}})
    entry = combined.by_group["618"]["2024A"]["61885"]
    assert entry == CombinedEntry(reimbursement=100.0, payment=50.0, combined=150.0)
    assert combined.records[0].payment_year == "2024"


def test_missing_payment_degrades_to_reimbursement():
    combined = reconcile({"618": {"2023": {"61885": 538.82}}}, {"2023": {}})
    entry = combined.by_group["618"]["2023"]["61885"]
    assert entry.payment is None
    assert entry.combined == 538.82


def test_zero_payment_counts_as_present():
    entry = CombinedEntry.from_rates(100.0, 0.0)
    assert entry.payment == 0.0
    assert entry.combined == 100.0
    assert CombinedEntry.from_rates(0.1, 0.2).combined == 0.3


def test_changes_use_explicit_nulls_for_missing_codes():
    reimbursement = {
        "618": {
            "2024B": {"61885": 110.0},
            "2023": {"61885": 100.0, "61888": 40.0},
            "2024A": {},
        }
    }
    combined = reconcile(reimbursement, {"2023": {"61885": 50.0}, "2024": {"61885": 60.0}})
    assert combined.group_years("618") == ["2023", "2024B"]
    row = combined.changes["618"]["61885"]["2023 to 2024B"]
    assert row == CombinedChange(reimbursement=10.0, payment=20.0, combined=13.33)
    assert combined.changes["618"]["61888"]["2023 to 2024B"] == CombinedChange()


def test_by_code_later_group_wins():
    combined = reconcile(
        {"618": {"2023": {"61885": 1.0}}, "645": {"2023": {"61885": 2.0}}},
        {},
    )
    assert combined.by_code["61885"]["2023"].group == "645"
    assert combined.code_view("61885") == {
        "2023": {"reimbursement": 2.0, "payment": None, "combined": 2.0, "group": "645"}
    }


def test_unknown_keys_return_none():
    combined = reconcile({"618": {"2023": {"61885": 1.0}}}, {})
    assert combined.group_view("999") is None
    assert combined.code_view("00000") is None


def test_group_view_shape():
    combined = reconcile({"618": {"2023": {"61885": 1.0}, "2022": {"61885": 2.0}}}, {})
    view = combined.group_view("618")
    assert list(view) == ["2022", "2023", "changes"]
    assert view["changes"]["61885"]["2022 to 2023"] == {
        "reimbursement": -50.0,
        "payment": None,
        "combined": -50.0,
    }


def test_reconcile_is_idempotent(rate_tree):
    from app.rates.groups import DEFAULT_CODE_GROUPS
    from app.rates.payments import load_payment_series
    from app.rates.series import calculate_all_reimbursements

    def run():
        series = calculate_all_reimbursements(DEFAULT_CODE_GROUPS, ["2023", "2024A"], rate_tree["data_dir"])
        return reconcile(series.rates_by_group(), load_payment_series(rate_tree["payment_dir"])).to_dict()

    assert run() == run()
