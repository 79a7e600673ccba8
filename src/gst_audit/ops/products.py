"""HSN code operations."""

from __future__ import annotations

from typing import Any

from gst_audit.core.errors import GstAuditError
from gst_audit.ops.context import OperationContext
from gst_audit.ops.result import OperationResult, PagedResult, start_timer


def list_products(ctx: OperationContext, page: Any = 1, per_page: Any = None) -> PagedResult[dict[str, Any]]:
    """Published products with their HSN status (``ok`` / ``missing``)."""
    timer = start_timer()
    items, total, page_no, size = ctx.services.catalog.list_products(page, per_page)
    return PagedResult.from_items(
        [p.to_dict() for p in items],
        total,
        page=page_no,
        per_page=size,
        elapsed_ms=timer(),
    )


def get_product(ctx: OperationContext, product_id: int) -> OperationResult[dict[str, Any]]:
    timer = start_timer()
    try:
        product = ctx.services.catalog.get(product_id)
    except GstAuditError as e:
        return OperationResult.from_error(e, elapsed_ms=timer())
    return OperationResult.ok(product.to_dict(), elapsed_ms=timer())


def set_hsn_code(ctx: OperationContext, product_id: int, code: str) -> OperationResult[dict[str, Any]]:
    """Save a product's HSN code. An empty code clears it."""
    timer = start_timer()
    try:
        product = ctx.services.catalog.set_code(product_id, code)
    except GstAuditError as e:
        return OperationResult.from_error(e, elapsed_ms=timer())
    return OperationResult.ok(product.to_dict(), elapsed_ms=timer())


__all__ = ["list_products", "get_product", "set_hsn_code"]
