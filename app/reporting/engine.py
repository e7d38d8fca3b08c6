"""HTML report rendering for reimbursement and combined rate snapshots.

Templates live in ``templates/`` next to this module. Any null or missing value
renders as an ``N/A`` placeholder; change cells carry a ``positive-change`` or
``negative-change`` class.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.rates.changes import consecutive_periods
from app.rates.reconcile import CombinedRates
from app.rates.series import ReimbursementSeries
from app.rates.years import period_label, sort_years

_TEMPLATE_ROOT = Path(__file__).parent / "templates"

MISSING = "N/A"


def fmt_money(value: Any) -> str:
    if value is None:
        return MISSING
    try:
        return f"{float(value):.2f}"
    except (TypeError, ValueError):
        return MISSING


def fmt_change(value: Any) -> str:
    if value is None:
        return MISSING
    value = value + 0.0
    sign = "+" if value >= 0 else ""
    return f"{sign}{value}%"


def change_class(value: Any) -> str:
    if value is None:
        return "missing-data"
    return "positive-change" if value >= 0 else "negative-change"


def _build_env(template_root: Path) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(template_root)),
        autoescape=select_autoescape(enabled_extensions=("html", "j2"), default=True),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["money"] = fmt_money
    env.filters["pct"] = fmt_change
    env.filters["change_class"] = change_class
    env.globals["MISSING"] = MISSING
    return env


_ENV = _build_env(_TEMPLATE_ROOT)


def _periods(years: Iterable[str]) -> list[str]:
    return [period_label(prev, curr) for prev, curr in consecutive_periods(list(years))]


def reimbursement_context(series: ReimbursementSeries, group: str | None = None) -> dict[str, Any]:
    sections = []
    for name, group_series in series.groups.items():
        if group is not None and name != group:
            continue
        years = list(group_series.years)
        sections.append(
            {
                "name": name,
                "years": years,
                "periods": _periods(years),
                "codes": group_series.codes(),
                "rates": group_series.rates,
                "changes": group_series.changes,
            }
        )
    return {
        "title": "HCPCS Reimbursement Analysis",
        "facility_type": series.facility_type,
        "groups": sections,
    }


def combined_context(
    combined: CombinedRates, *, code: str | None = None, group: str | None = None
) -> dict[str, Any]:
    group_sections = []
    for name, entries in combined.by_group.items():
        if group is not None and name != group:
            continue
        years = sort_years(entries)
        codes = sorted({c for year in years for c in entries[year]})
        if code is not None:
            codes = [c for c in codes if c == code]
            if not codes:
                continue
        group_sections.append(
            {
                "name": name,
                "years": years,
                "periods": _periods(years),
                "codes": codes,
                "entries": entries,
                "changes": combined.changes.get(name, {}),
            }
        )

    code_sections = []
    for c in sorted(combined.by_code):
        if code is not None and c != code:
            continue
        records = combined.by_code[c]
        rows = [records[year] for year in sort_years(records)]
        if group is not None:
            rows = [record for record in rows if record.group == group]
            if not rows:
                continue
        code_sections.append({"code": c, "rows": rows})

    if code is not None:
        title = f"HCPCS Code {code}: Payment and Reimbursement Analysis"
    elif group is not None:
        title = f"HCPCS Group {group}: Payment and Reimbursement Analysis"
    else:
        title = "HCPCS Payment and Reimbursement Analysis"
    return {"title": title, "groups": group_sections, "codes": code_sections}


def render_reimbursement_report(series: ReimbursementSeries, group: str | None = None) -> str:
    template = _ENV.get_template("reimbursement_report.html.j2")
    return template.render(**reimbursement_context(series, group))


def render_combined_report(
    combined: CombinedRates, *, code: str | None = None, group: str | None = None
) -> str:
    template = _ENV.get_template("combined_report.html.j2")
    return template.render(**combined_context(combined, code=code, group=group))


__all__ = [
    "MISSING",
    "change_class",
    "combined_context",
    "fmt_change",
    "fmt_money",
    "reimbursement_context",
    "render_combined_report",
    "render_reimbursement_report",
]
