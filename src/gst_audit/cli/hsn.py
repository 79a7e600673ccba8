"""
CLI: ``gst-audit hsn`` — product HSN codes.
"""

from __future__ import annotations

import typer

from gst_audit.cli.utils import make_context, output_paged, output_result

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def list_codes(
    page: int = typer.Option(1, "--page"),
    per_page: int | None = typer.Option(None, "--per-page"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List published products and their HSN codes."""
    from gst_audit.ops.products import list_products

    ctx, _ = make_context(database)
    output_paged(list_products(ctx, page, per_page), as_json=json_out, title="HSN Codes")


@app.command("set")
def set_code(
    product_id: int = typer.Argument(..., help="Product ID"),
    code: str = typer.Argument(..., help="HSN code (empty string clears it)"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Save a product's HSN code."""
    from gst_audit.ops.products import set_hsn_code

    ctx, _ = make_context(database)
    output_result(set_hsn_code(ctx, product_id, code), as_json=json_out, title="HSN Code Saved")
