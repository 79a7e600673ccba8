"""
Reports router.

GET  /reports/preview?period=YYYY-MM&page=1&per_page=20
GET  /reports/export?period=YYYY-MM
POST /reports/send
POST /reports/test
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query
from fastapi.responses import Response
from pydantic import BaseModel, Field

from gst_audit.api.deps import OpContext
from gst_audit.api.middleware.errors import handle_result_error
from gst_audit.api.schemas.common import SuccessResponse

router = APIRouter(prefix="/reports")


class SendReportBody(BaseModel):
    period: str | None = Field(default=None, description="YYYY-MM; defaults to last month")
    recipients: list[str] | str | None = Field(default=None, description="Defaults to the scheduled recipients")


class TestSendBody(BaseModel):
    recipient: str


@router.get("/preview", response_model=SuccessResponse[dict[str, Any]])
def preview(
    ctx: OpContext,
    period: str | None = Query(None, description="YYYY-MM; defaults to last month"),
    page: int = Query(1, description="Page number (1-indexed)"),
    per_page: int | None = Query(None, description="Orders per page (10..1000)"),
):
    """One page of the month's report rows."""
    from gst_audit.ops.reports import preview_report

    result = preview_report(ctx, period, page, per_page)
    if not result.success:
        return handle_result_error(result)
    return SuccessResponse(data=result.data, elapsed_ms=result.elapsed_ms)


@router.get("/export")
def export(ctx: OpContext, period: str | None = Query(None, description="YYYY-MM")):
    """Download the month's report as ``.xlsx``."""
    from gst_audit.ops.reports import export_report

    result = export_report(ctx, period)
    if not result.success:
        return handle_result_error(result)
    artifact = result.data
    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{artifact.filename}"',
            "Cache-Control": "no-store",
        },
    )


@router.post("/send", response_model=SuccessResponse[dict[str, Any]])
def send(body: SendReportBody, ctx: OpContext):
    """Send a report now; does not affect the scheduled send."""
    from gst_audit.ops.reports import send_now

    result = send_now(ctx, body.period, body.recipients)
    if not result.success:
        return handle_result_error(result)
    return SuccessResponse(data=result.data, elapsed_ms=result.elapsed_ms)


@router.post("/test", response_model=SuccessResponse[dict[str, Any]])
def send_test(body: TestSendBody, ctx: OpContext):
    """Send last month's report to one address."""
    from gst_audit.ops.reports import send_test as _send_test

    result = _send_test(ctx, body.recipient)
    if not result.success:
        return handle_result_error(result)
    return SuccessResponse(data=result.data, elapsed_ms=result.elapsed_ms)
