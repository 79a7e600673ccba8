"""
CLI: ``gst-audit report`` — preview, export and send GST reports.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.table import Table

from gst_audit.cli.utils import console, fail, make_context, output_result

app = typer.Typer(no_args_is_help=True)

PERIOD_HELP = "Month as YYYY-MM (default: last month)"


@app.command("preview")
def preview(
    period: str | None = typer.Option(None, "--period", "-p", help=PERIOD_HELP),
    page: int = typer.Option(1, "--page"),
    per_page: int | None = typer.Option(None, "--per-page"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show one page of report rows."""
    from gst_audit.ops.reports import preview_report

    ctx, _ = make_context(database)
    result = preview_report(ctx, period, page, per_page)
    if not result.success:
        fail(result)
    data = result.data

    if json_out:
        console.print_json(json.dumps(data, default=str))
        return

    top, sub = data["header_rows"]
    table = Table(title=f"GST Audit {data['period']}", show_lines=False, pad_edge=False)
    for head, rate in zip(top, sub, strict=True):
        table.add_column(f"{head}\n{rate}".strip(), overflow="fold")
    for row in data["rows"]:
        table.add_row(*row)
    console.print(table)
    console.print(
        f"\n[dim]Page {data['page']} of {data['pages']} ({data['total_orders']} orders)[/dim]"
    )


@app.command("export")
def export(
    period: str | None = typer.Option(None, "--period", "-p", help=PERIOD_HELP),
    output: Path | None = typer.Option(None, "--output", "-o", help="File or directory to write"),
    database: str | None = typer.Option(None, "--database", "-d"),
) -> None:
    """Write the month's report to an ``.xlsx`` file."""
    from gst_audit.ops.reports import export_report

    ctx, _ = make_context(database)
    result = export_report(ctx, period)
    if not result.success:
        fail(result)
    artifact = result.data

    target = output or Path(artifact.filename)
    if target.is_dir():
        target = target / artifact.filename
    target.write_bytes(artifact.content)
    console.print(
        f"[green]Wrote[/green] {target} ({artifact.rows} rows from {artifact.orders} orders)"
    )


@app.command("send")
def send(
    period: str | None = typer.Option(None, "--period", "-p", help=PERIOD_HELP),
    recipients: str | None = typer.Option(None, "--to", help="Comma separated emails (default: scheduled)"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Send a report now, outside the schedule."""
    from gst_audit.ops.reports import send_now

    ctx, _ = make_context(database)
    output_result(send_now(ctx, period, recipients), as_json=json_out, title="Report Sent")


@app.command("test")
def test(
    recipient: str = typer.Argument(..., help="Email address"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Send last month's report to one address."""
    from gst_audit.ops.reports import send_test

    ctx, _ = make_context(database)
    output_result(send_test(ctx, recipient), as_json=json_out, title="Test Report Sent")
