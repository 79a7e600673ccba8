"""
Products router (HSN codes).

GET /products
GET /products/{product_id}
PUT /products/{product_id}/hsn
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Path, Query
from pydantic import BaseModel

from gst_audit.api.deps import OpContext
from gst_audit.api.middleware.errors import handle_result_error
from gst_audit.api.schemas.common import PagedResponse, PageMeta, SuccessResponse

router = APIRouter(prefix="/products")


class HsnBody(BaseModel):
    hsn_code: str


@router.get("", response_model=PagedResponse[dict[str, Any]])
def list_products(
    ctx: OpContext,
    page: int = Query(1),
    per_page: int | None = Query(None),
):
    """Published products and whether their HSN code is set."""
    from gst_audit.ops.products import list_products as _list

    result = _list(ctx, page, per_page)
    return PagedResponse(
        data=result.data or [],
        page=PageMeta(
            total=result.total,
            page=result.page,
            per_page=result.per_page,
            total_pages=result.pages,
            has_more=result.has_more,
        ),
        elapsed_ms=result.elapsed_ms,
    )


@router.get("/{product_id}", response_model=SuccessResponse[dict[str, Any]])
def get_product(ctx: OpContext, product_id: int = Path(...)):
    from gst_audit.ops.products import get_product as _get

    result = _get(ctx, product_id)
    if not result.success:
        return handle_result_error(result)
    return SuccessResponse(data=result.data, elapsed_ms=result.elapsed_ms)


@router.put("/{product_id}/hsn", response_model=SuccessResponse[dict[str, Any]])
def set_hsn(body: HsnBody, ctx: OpContext, product_id: int = Path(...)):
    from gst_audit.ops.products import set_hsn_code

    result = set_hsn_code(ctx, product_id, body.hsn_code)
    if not result.success:
        return handle_result_error(result)
    return SuccessResponse(data=result.data, elapsed_ms=result.elapsed_ms)
