"""
Access router (webhook keys and the access log).

GET  /access/key
POST /access/key/rotate
GET  /access/keys
GET  /access/logs
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query

from gst_audit.api.deps import OpContext
from gst_audit.api.middleware.errors import handle_result_error
from gst_audit.api.schemas.common import PagedResponse, PageMeta, SuccessResponse

router = APIRouter(prefix="/access")


@router.get("/key", response_model=SuccessResponse[dict[str, Any]])
def current_key(ctx: OpContext):
    """The active key, created on first request."""
    from gst_audit.ops.access import get_current_key

    result = get_current_key(ctx)
    if not result.success:
        return handle_result_error(result)
    return SuccessResponse(data=result.data, elapsed_ms=result.elapsed_ms)


@router.post("/key/rotate", response_model=SuccessResponse[dict[str, Any]])
def rotate(ctx: OpContext):
    """Revoke the active key immediately and issue a new one."""
    from gst_audit.ops.access import rotate_key

    result = rotate_key(ctx)
    if not result.success:
        return handle_result_error(result)
    return SuccessResponse(data=result.data, elapsed_ms=result.elapsed_ms, warnings=result.warnings)


@router.get("/keys", response_model=SuccessResponse[list[dict[str, Any]]])
def key_history(ctx: OpContext, limit: int = Query(50, ge=1, le=500)):
    from gst_audit.ops.access import list_keys

    result = list_keys(ctx, limit=limit)
    if not result.success:
        return handle_result_error(result)
    return SuccessResponse(data=result.data, elapsed_ms=result.elapsed_ms)


@router.get("/logs", response_model=PagedResponse[dict[str, Any]])
def access_logs(
    ctx: OpContext,
    limit: int = Query(50, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    """Webhook calls, newest first."""
    from gst_audit.ops.access import list_access_logs

    result = list_access_logs(ctx, limit=limit, offset=offset)
    return PagedResponse(
        data=result.data or [],
        page=PageMeta(
            total=result.total,
            page=result.page,
            per_page=result.per_page,
            total_pages=result.pages,
            has_more=offset + limit < result.total,
        ),
        elapsed_ms=result.elapsed_ms,
    )
