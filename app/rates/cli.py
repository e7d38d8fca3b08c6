"""Typer CLI for building rate tables and HTML reports."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from app.common.exceptions import RateComputationError
from app.common.logger import setup_logger
from app.reporting.engine import fmt_change, fmt_money, render_combined_report, render_reimbursement_report
from config.settings import RateSettings

from .calculator import calculate_rate
from .service import RateService
from .years import period_label

app = typer.Typer(help="HCPCS reimbursement and payment rate tools.")
console = Console()


def _settings(
    data_dir: Optional[Path],
    payment_dir: Optional[Path],
    facility_type: Optional[str],
) -> RateSettings:
    overrides: dict[str, object] = {}
    if data_dir is not None:
        overrides["data_dir"] = data_dir
    if payment_dir is not None:
        overrides["payment_dir"] = payment_dir
    if facility_type is not None:
        if facility_type not in ("facility", "non-facility"):
            typer.secho(f"Unknown facility type: {facility_type}", err=True, fg=typer.colors.RED)
            raise typer.Exit(code=2)
        overrides["facility_type"] = facility_type
    return RateSettings(**overrides)


@app.command()
def calc(
    work_rvu: float = typer.Argument(..., help="Work RVU"),
    pe_rvu: float = typer.Argument(..., help="Practice expense RVU"),
    mp_rvu: float = typer.Argument(..., help="Malpractice RVU"),
    conversion_factor: float = typer.Argument(..., help="Conversion factor"),
    work_gpci: float = typer.Option(1.0, "--work-gpci"),
    pe_gpci: float = typer.Option(1.0, "--pe-gpci"),
    mp_gpci: float = typer.Option(1.0, "--mp-gpci"),
) -> None:
    """Apply the RVU formula to raw inputs."""
    rate = calculate_rate(
        work_rvu,
        pe_rvu,
        mp_rvu,
        conversion_factor,
        work_gpci=work_gpci,
        pe_gpci=pe_gpci,
        mp_gpci=mp_gpci,
    )
    typer.echo(f"{rate:.2f}")


@app.command()
def build(
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", help="Fee schedule root directory"),
    payment_dir: Optional[Path] = typer.Option(None, "--payment-dir", help="Addendum B directory"),
    facility_type: Optional[str] = typer.Option(None, "--facility-type", help="facility or non-facility"),
    json_output: bool = typer.Option(False, "--json", help="Emit the combined snapshot as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Compute reimbursement and combined rates and print them."""
    setup_logger("app", "DEBUG" if verbose else ("ERROR" if json_output else "WARNING"))
    service = RateService(_settings(data_dir, payment_dir, facility_type))
    try:
        reimbursement = service.compute_reimbursement()
        snapshot = service.compute_combined(reimbursement)
    except RateComputationError as e:
        typer.secho(f"Rate computation failed: {e}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)

    if json_output:
        payload = {
            "reimbursement": reimbursement.to_dict(),
            "combined": snapshot.combined.to_dict(),
        }
        typer.echo(json.dumps(payload, indent=2))
        return

    for name, series in reimbursement.groups.items():
        years = series.populated_years()
        if not years:
            console.print(f"[yellow]Group {name}: no fee schedule files found[/yellow]")
            continue
        table = Table(title=f"Group {name} ({reimbursement.facility_type})", show_lines=False)
        table.add_column("HCPCS", style="cyan", no_wrap=True)
        for year in years:
            table.add_column(year, justify="right")
        table.add_column("Payment", justify="right")
        table.add_column("Combined", justify="right")

        latest = years[-1]
        latest_entries = snapshot.combined.by_group.get(name, {}).get(latest, {})
        for code in series.codes():
            entry = latest_entries.get(code)
            table.add_row(
                code,
                *(fmt_money(series.rates[year].get(code)) for year in years),
                fmt_money(entry.payment if entry else None),
                fmt_money(entry.combined if entry else None),
            )
        console.print(table)

        changes = Table(title=f"Group {name}: year-over-year change", show_lines=False)
        changes.add_column("HCPCS", style="cyan", no_wrap=True)
        periods = [period_label(prev, curr) for prev, curr in zip(years, years[1:])]
        for period in periods:
            changes.add_column(period, justify="right")
        for code in series.codes():
            row = series.changes.get(code, {})
            changes.add_row(code, *(fmt_change(row.get(period)) for period in periods))
        console.print(changes)

    console.print(
        f"Payment years loaded: {', '.join(sorted(snapshot.payments)) or 'none'}"
    )


@app.command()
def report(
    output: Path = typer.Argument(..., help="Where to write the HTML report"),
    kind: str = typer.Option("combined", "--kind", help="combined or reimbursement"),
    group: Optional[str] = typer.Option(None, "--group"),
    code: Optional[str] = typer.Option(None, "--code", help="Combined report only"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir"),
    payment_dir: Optional[Path] = typer.Option(None, "--payment-dir"),
    facility_type: Optional[str] = typer.Option(None, "--facility-type"),
) -> None:
    """Render an HTML report to a file."""
    setup_logger("app", "WARNING")
    if kind not in ("combined", "reimbursement"):
        typer.secho(f"Unknown report kind: {kind}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=2)

    service = RateService(_settings(data_dir, payment_dir, facility_type))
    try:
        reimbursement = service.compute_reimbursement()
        if kind == "reimbursement":
            if group is not None and reimbursement.get(group) is None:
                typer.secho(f"Group {group} not found", err=True, fg=typer.colors.RED)
                raise typer.Exit(code=1)
            html = render_reimbursement_report(reimbursement, group)
        else:
            combined = service.compute_combined(reimbursement).combined
            if group is not None and combined.group_view(group) is None:
                typer.secho(f"Group {group} not found", err=True, fg=typer.colors.RED)
                raise typer.Exit(code=1)
            if code is not None and combined.code_view(code) is None:
                typer.secho(f"Code {code} not found", err=True, fg=typer.colors.RED)
                raise typer.Exit(code=1)
            html = render_combined_report(combined, code=code, group=group)
    except RateComputationError as e:
        typer.secho(f"Rate computation failed: {e}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(html, encoding="utf-8")
    console.print(f"Wrote {kind} report to {output}")


if __name__ == "__main__":
    app()
