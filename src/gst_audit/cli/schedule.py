"""
CLI: ``gst-audit schedule`` — schedule config and trigger commands.
"""

from __future__ import annotations

from datetime import datetime

import typer

from gst_audit.cli.utils import make_context, output_result

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show the schedule configuration and next run."""
    from gst_audit.ops.schedule import get_config

    ctx, _ = make_context(database)
    output_result(get_config(ctx), as_json=json_out, title="Schedule")


@app.command("set")
def set_schedule(
    enabled: bool | None = typer.Option(None, "--enabled/--disabled"),
    recipients: str | None = typer.Option(None, "--recipients", "-r", help="Comma separated emails"),
    day: int | None = typer.Option(None, "--day", help="Day of month (1-28)"),
    time_of_day: str | None = typer.Option(None, "--time", help="HH:MM"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Update the schedule.  Invalid values fall back to safe defaults."""
    from gst_audit.ops.schedule import update_config

    ctx, _ = make_context(database)
    result = update_config(
        ctx,
        enabled=enabled,
        recipients=recipients,
        day_of_month=day,
        time_of_day=time_of_day,
    )
    output_result(result, as_json=json_out, title="Schedule Updated")


@app.command("status")
def status(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show the send marker, next run and last attempt."""
    from gst_audit.ops.schedule import get_status

    ctx, _ = make_context(database)
    output_result(get_status(ctx), as_json=json_out, title="Trigger Status")


@app.command("attempt")
def attempt(
    at: str | None = typer.Option(None, "--at", help="Pretend the current time is this ISO timestamp"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Run one idempotent trigger attempt (what cron should call)."""
    from gst_audit.ops.schedule import run_attempt

    now = None
    if at:
        try:
            now = datetime.fromisoformat(at)
        except ValueError as e:
            raise typer.BadParameter(f"Not an ISO timestamp: {at}", param_hint="--at") from e

    ctx, _ = make_context(database)
    output_result(run_attempt(ctx, trigger="cli", now=now), as_json=json_out, title="Attempt")


@app.command("reset")
def reset(
    database: str | None = typer.Option(None, "--database", "-d"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Forget the last sent period so this month can be sent again."""
    from gst_audit.ops.schedule import reset_marker

    if not yes:
        typer.confirm("Reset the send marker? The current month may be sent again.", abort=True)
    ctx, _ = make_context(database)
    output_result(reset_marker(ctx), as_json=json_out, title="Send Marker")
