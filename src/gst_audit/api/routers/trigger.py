"""
Trigger webhook.

GET /trigger?trigger=1&key=<access key>

For cron jobs on hosts whose scheduler cannot be trusted.  Always answers
with ``{success, message, timestamp}``; 200 with a valid active key, 401
without one, 400 when the key is valid but ``trigger`` is not ``1``.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from gst_audit.access.log import RequestContext
from gst_audit.api.deps import OpContext
from gst_audit.api.schemas.common import WebhookBody

router = APIRouter()


def request_context(request: Request) -> RequestContext:
    """Caller IP (first ``X-Forwarded-For`` hop if present) and User-Agent."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    ip = forwarded.split(",")[0].strip() if forwarded else None
    if not ip and request.client is not None:
        ip = request.client.host
    return RequestContext(ip=ip or None, user_agent=request.headers.get("User-Agent"))


@router.get(
    "/trigger",
    response_model=WebhookBody,
    responses={400: {"model": WebhookBody}, 401: {"model": WebhookBody}},
)
def trigger_webhook(
    request: Request,
    ctx: OpContext,
    trigger: str | None = Query(None, description="Must be 1"),
    key: str | None = Query(None, description="Active access key"),
):
    """Run a trigger attempt if the key is valid.

    The attempt runs synchronously; when the report is due and unsent
    this call sends it before answering.
    """
    from gst_audit.ops.access import handle_webhook

    response = handle_webhook(ctx, trigger, key, request_context(request))
    return JSONResponse(status_code=response.status_code, content=response.to_dict())
