"""
Report operations: preview, export, manual send and test send.

Manual sends go straight to the dispatcher.  They never claim or move the
send marker, so an operator can resend a month without suppressing (or
being suppressed by) the scheduled send.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from gst_audit.core.errors import GstAuditError
from gst_audit.core.logging import get_logger
from gst_audit.core.period import Period
from gst_audit.ops.context import OperationContext
from gst_audit.ops.result import OperationResult, start_timer
from gst_audit.scheduling.config import is_valid_email, normalize_recipients

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReportExport:
    """A rendered report artifact ready for download."""

    period: str
    filename: str
    media_type: str
    content: bytes
    rows: int
    orders: int


def _resolve_period(ctx: OperationContext, period: str | Period | None) -> Period:
    """Explicit period, or the month before now."""
    if isinstance(period, Period):
        return period
    if period:
        return Period.parse(period)
    return Period.of(ctx.services.now()).previous()


def preview_report(
    ctx: OperationContext,
    period: str | None = None,
    page: Any = 1,
    per_page: Any = None,
) -> OperationResult[dict[str, Any]]:
    """One page of the month's report rows."""
    timer = start_timer()
    try:
        target = _resolve_period(ctx, period)
        preview = ctx.services.aggregator.preview(target, page=page, per_page=per_page)
    except GstAuditError as e:
        return OperationResult.from_error(e, elapsed_ms=timer())
    return OperationResult.ok(preview.to_dict(), elapsed_ms=timer())


def export_report(ctx: OperationContext, period: str | None = None) -> OperationResult[ReportExport]:
    """Render the month's full report as a spreadsheet."""
    timer = start_timer()
    try:
        target = _resolve_period(ctx, period)
        table = ctx.services.aggregator.build(target)
        content = ctx.services.dispatcher.render(table)
    except GstAuditError as e:
        return OperationResult.from_error(e, elapsed_ms=timer())

    writer = ctx.services.dispatcher.writer
    export = ReportExport(
        period=str(target),
        filename=table.filename,
        media_type=writer.media_type,
        content=content,
        rows=len(table.rows),
        orders=table.order_count,
    )
    logger.info("report.exported", period=str(target), rows=export.rows, caller=ctx.caller)
    return OperationResult.ok(export, elapsed_ms=timer())


def send_now(
    ctx: OperationContext,
    period: str | None = None,
    recipients: Any = None,
) -> OperationResult[dict[str, Any]]:
    """Send a report immediately, bypassing the schedule and the send marker.

    Defaults to the previous month and the configured recipients.
    """
    timer = start_timer()
    try:
        target = _resolve_period(ctx, period)
        if recipients is None:
            to = ctx.services.schedule.load().recipients
        else:
            to = normalize_recipients(recipients)
        if not to:
            return OperationResult.fail(
                "VALIDATION_FAILED",
                "No valid recipients to send to",
                elapsed_ms=timer(),
            )
        table = ctx.services.aggregator.build(target)
        outcome = ctx.services.dispatcher.send(table, to)
    except GstAuditError as e:
        return OperationResult.from_error(e, elapsed_ms=timer())

    logger.info("report.sent_manually", period=str(target), success=outcome.success, caller=ctx.caller)
    if not outcome.success:
        return OperationResult.fail(
            "TRANSIENT",
            f"Delivery failed for {len(outcome.failed)} of {len(to)} recipient(s)",
            details=outcome.to_dict(),
            retryable=True,
            elapsed_ms=timer(),
        )
    return OperationResult.ok(outcome.to_dict(), elapsed_ms=timer())


def send_test(ctx: OperationContext, recipient: str) -> OperationResult[dict[str, Any]]:
    """Send the previous month's report to a single address."""
    address = (recipient or "").strip()
    if not is_valid_email(address):
        return OperationResult.fail("VALIDATION_FAILED", f"Invalid email address: {recipient!r}")
    return send_now(ctx, period=None, recipients=[address])


__all__ = ["ReportExport", "preview_report", "export_report", "send_now", "send_test"]
