"""
CLI: ``gst-audit keys`` — webhook access keys and access log.
"""

from __future__ import annotations

import typer

from gst_audit.cli.utils import make_context, output_paged, output_result

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show the active key (created on first use)."""
    from gst_audit.ops.access import get_current_key

    ctx, _ = make_context(database)
    output_result(get_current_key(ctx), as_json=json_out, title="Active Key")


@app.command("rotate")
def rotate(
    database: str | None = typer.Option(None, "--database", "-d"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Revoke the active key and issue a new one."""
    from gst_audit.ops.access import rotate_key

    if not yes:
        typer.confirm("Rotate the key? The current key stops working immediately.", abort=True)
    ctx, _ = make_context(database)
    output_result(rotate_key(ctx), as_json=json_out, title="New Key")


@app.command("list")
def list_keys(
    limit: int = typer.Option(50, "--limit", "-n"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Key history, newest first (values masked)."""
    from gst_audit.ops.access import list_keys as _list

    ctx, _ = make_context(database)
    output_result(_list(ctx, limit=limit), as_json=json_out, title="Access Keys")


@app.command("logs")
def logs(
    limit: int = typer.Option(50, "--limit", "-n"),
    offset: int = typer.Option(0, "--offset"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Webhook access log, newest first."""
    from gst_audit.ops.access import list_access_logs

    ctx, _ = make_context(database)
    output_paged(list_access_logs(ctx, limit=limit, offset=offset), as_json=json_out, title="Access Log")
