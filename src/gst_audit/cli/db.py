"""
CLI: ``gst-audit db`` — database management commands.
"""

from __future__ import annotations

import typer

from gst_audit.cli.utils import make_context, output_result

app = typer.Typer(no_args_is_help=True)


@app.command()
def init(
    database: str | None = typer.Option(None, "--database", "-d", help="Database path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Initialise database schema (create tables)."""
    from gst_audit.ops.database import initialize_database

    ctx, _conn = make_context(database)
    output_result(initialize_database(ctx), as_json=json_out, title="Database Init")


@app.command()
def tables(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show row counts for all tables."""
    from gst_audit.ops.database import table_counts

    ctx, _conn = make_context(database)
    output_result(table_counts(ctx), as_json=json_out, title="Table Counts")
