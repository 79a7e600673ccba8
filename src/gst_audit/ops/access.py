"""
Access operations: the trigger webhook and webhook key management.

:func:`handle_webhook` is the whole webhook contract in one function so
the HTTP router only translates it to a response:

    ==========================  ======  =============================
    key                         status  access log entry
    ==========================  ======  =============================
    missing / unknown / revoked 401     key_id NULL, success false
    active, trigger != "1"      400     key_id, success false
    active, trigger == "1"      200     key_id, success true
    key table unreadable        503     key_id NULL, success false
    ==========================  ======  =============================

Exactly one access log entry is written per call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from gst_audit.access.log import RequestContext
from gst_audit.core.errors import GstAuditError
from gst_audit.core.logging import get_logger
from gst_audit.ops.context import OperationContext
from gst_audit.ops.result import OperationResult, PagedResult, start_timer

logger = get_logger(__name__)

TRIGGER_VALUE = "1"


@dataclass
class WebhookResponse:
    status_code: int
    success: bool
    message: str
    timestamp: str
    attempt: dict[str, Any] | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "success": self.success,
            "message": self.message,
            "timestamp": self.timestamp,
        }
        if self.attempt is not None:
            body["attempt"] = self.attempt
        return body


def handle_webhook(
    ctx: OperationContext,
    trigger: str | None,
    key: str | None,
    request: RequestContext | None = None,
) -> WebhookResponse:
    """Authenticate a webhook call and, if allowed, run a trigger attempt."""
    services = ctx.services
    timestamp = services.now().isoformat(timespec="seconds")

    try:
        access_key = services.keys.lookup(key)
    except GstAuditError as e:
        logger.error("webhook.lookup_failed", error=str(e))
        services.access_log.record(None, False, f"Key lookup failed: {e}", request)
        return WebhookResponse(503, False, "Key lookup failed, try again later", timestamp)

    if access_key is None:
        reason = "Missing access key" if not key else "Invalid or inactive access key"
        services.access_log.record(None, False, reason, request)
        logger.warning("webhook.unauthorized", ip=request.ip if request else None)
        return WebhookResponse(401, False, reason, timestamp)

    if (trigger or "").strip() != TRIGGER_VALUE:
        message = f"Invalid trigger value; expected trigger={TRIGGER_VALUE}"
        services.access_log.record(access_key.id, False, message, request)
        return WebhookResponse(400, False, message, timestamp)

    try:
        result = services.trigger.fire("webhook")
    except Exception as e:
        logger.exception("webhook.attempt_crashed")
        services.access_log.record(access_key.id, True, f"Attempt error: {e}", request)
        return WebhookResponse(200, False, f"Trigger attempt failed: {e}", timestamp)

    services.access_log.record(access_key.id, True, result.error, request)
    logger.info("webhook.triggered", key_id=access_key.id, outcome=result.outcome.value)
    return WebhookResponse(200, result.success, result.message, timestamp, attempt=result.to_dict())


def get_current_key(ctx: OperationContext) -> OperationResult[dict[str, Any]]:
    """The active webhook key (created on first use), unmasked."""
    timer = start_timer()
    try:
        key = ctx.services.keys.current_key()
    except GstAuditError as e:
        return OperationResult.from_error(e, elapsed_ms=timer())
    return OperationResult.ok(key.to_dict(reveal=True), elapsed_ms=timer())


def rotate_key(ctx: OperationContext) -> OperationResult[dict[str, Any]]:
    """Revoke the active key and issue a new one."""
    timer = start_timer()
    try:
        key = ctx.services.keys.rotate()
    except GstAuditError as e:
        return OperationResult.from_error(e, elapsed_ms=timer())
    return OperationResult.ok(
        key.to_dict(reveal=True),
        warnings=["The previous key no longer authenticates; update any cron job using it."],
        elapsed_ms=timer(),
    )


def list_keys(ctx: OperationContext, limit: int = 50) -> OperationResult[list[dict[str, Any]]]:
    timer = start_timer()
    try:
        keys = ctx.services.keys.list_keys(limit=limit)
    except GstAuditError as e:
        return OperationResult.from_error(e, elapsed_ms=timer())
    return OperationResult.ok([k.to_dict() for k in keys], elapsed_ms=timer())


def list_access_logs(
    ctx: OperationContext,
    limit: int = 50,
    offset: int = 0,
) -> PagedResult[dict[str, Any]]:
    """Webhook access entries, newest first."""
    timer = start_timer()
    limit = max(1, min(int(limit), 1000))
    entries = ctx.services.access_log.list_entries(limit=limit, offset=offset)
    total = ctx.services.access_log.count()
    return PagedResult.from_items(
        [e.to_dict() for e in entries],
        total,
        page=offset // limit + 1,
        per_page=limit,
        elapsed_ms=timer(),
    )


__all__ = [
    "WebhookResponse",
    "handle_webhook",
    "get_current_key",
    "rotate_key",
    "list_keys",
    "list_access_logs",
]
