"""Tests for the rate-suite command line."""

import json
import logging

import pytest
from typer.testing import CliRunner

from app.rates.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _restore_app_logger():
    logger = logging.getLogger("app")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


def test_calc_prints_rate():
    result = runner.invoke(app, ["calc", "6.05", "6.76", "2.12", "36.0896"])
    assert result.exit_code == 0
    assert result.output.strip() == "538.82"


def test_build_json(rate_tree):
    result = runner.invoke(
        app,
        [
            "build",
            "--data-dir", str(rate_tree["data_dir"]),
            "--payment-dir", str(rate_tree["payment_dir"]),
            "--json",
        ],
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["combined"]["by_group"]["618"]["2023"]["61885"]["combined"] == 1538.82


def test_report_writes_html(rate_tree, tmp_path):
    out = tmp_path / "out" / "combined.html"
    result = runner.invoke(
        app,
        [
            "report", str(out),
            "--data-dir", str(rate_tree["data_dir"]),
            "--payment-dir", str(rate_tree["payment_dir"]),
        ],
    )
    assert result.exit_code == 0
    assert "1538.82" in out.read_text(encoding="utf-8")


def test_report_unknown_group_fails(rate_tree, tmp_path):
    result = runner.invoke(
        app,
        ["report", str(tmp_path / "r.html"), "--kind", "reimbursement", "--group", "999",
         "--data-dir", str(rate_tree["data_dir"])],
    )
    assert result.exit_code == 1
