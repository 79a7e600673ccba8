"""
Root Typer application for the ``gst-audit`` CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from gst_audit import __version__

app = Typer(
    name="gst-audit",
    help="gst-audit — scheduled GST audit reports.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"gst-audit {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str = typer.Option("WARNING", "--log-level", envvar="GST_AUDIT_LOG_LEVEL", help="Log level"),
) -> None:
    """gst-audit CLI — schedule, keys, reports and HSN codes."""
    from gst_audit.core.logging import configure_logging

    configure_logging(level=log_level, json_format=False)


# ── Sub-command registration ─────────────────────────────────────────────

from gst_audit.cli.db import app as db_app  # noqa: E402
from gst_audit.cli.hsn import app as hsn_app  # noqa: E402
from gst_audit.cli.keys import app as keys_app  # noqa: E402
from gst_audit.cli.report import app as report_app  # noqa: E402
from gst_audit.cli.schedule import app as sched_app  # noqa: E402
from gst_audit.cli.serve import app as serve_app  # noqa: E402

app.add_typer(sched_app, name="schedule", help="Schedule and trigger.")
app.add_typer(keys_app, name="keys", help="Webhook access keys and log.")
app.add_typer(report_app, name="report", help="Preview, export and send reports.")
app.add_typer(hsn_app, name="hsn", help="Product HSN codes.")
app.add_typer(db_app, name="db", help="Database operations.")
app.add_typer(serve_app, name="serve", help="Start the API server.")
