"""
Schedule operations: read and change the config, inspect and drive the
trigger.

Config updates never fail on bad values; they are normalized (day → 1,
time → 09:00, bad addresses dropped) and the normalized config is
returned so the caller sees what was actually stored.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from gst_audit.core.errors import GstAuditError
from gst_audit.ops.context import OperationContext
from gst_audit.ops.result import OperationResult, start_timer
from gst_audit.scheduling.calculator import next_run


def get_config(ctx: OperationContext) -> OperationResult[dict[str, Any]]:
    timer = start_timer()
    config = ctx.services.schedule.load()
    data = config.to_dict()
    data["next_run"] = next_run(config, ctx.services.now()).isoformat() if config.is_active else None
    return OperationResult.ok(data, elapsed_ms=timer())


def update_config(
    ctx: OperationContext,
    *,
    enabled: bool | None = None,
    recipients: Any = None,
    day_of_month: Any = None,
    time_of_day: Any = None,
) -> OperationResult[dict[str, Any]]:
    """Merge and persist schedule fields, then re-arm the wake-up."""
    timer = start_timer()
    try:
        config = ctx.services.trigger.update_config(
            enabled=enabled,
            recipients=recipients,
            day_of_month=day_of_month,
            time_of_day=time_of_day,
        )
    except GstAuditError as e:
        return OperationResult.from_error(e, elapsed_ms=timer())

    warnings = []
    if config.enabled and not config.recipients:
        warnings.append("Schedule is enabled but has no valid recipients; nothing will be sent.")
    data = config.to_dict()
    data["next_run"] = next_run(config, ctx.services.now()).isoformat() if config.is_active else None
    return OperationResult.ok(data, warnings=warnings, elapsed_ms=timer())


def get_status(ctx: OperationContext) -> OperationResult[dict[str, Any]]:
    timer = start_timer()
    return OperationResult.ok(ctx.services.trigger.status(), elapsed_ms=timer())


def get_health(ctx: OperationContext) -> OperationResult[dict[str, Any]]:
    timer = start_timer()
    return OperationResult.ok(ctx.services.trigger.health(), elapsed_ms=timer())


def run_attempt(
    ctx: OperationContext,
    trigger: str = "manual",
    now: datetime | None = None,
) -> OperationResult[dict[str, Any]]:
    """Run one arbiter attempt, exactly as a timer would."""
    timer = start_timer()
    result = ctx.services.trigger.fire(trigger, now=now)
    if not result.success:
        return OperationResult.fail(
            "TRANSIENT",
            result.message,
            details=result.to_dict(),
            retryable=True,
            elapsed_ms=timer(),
        )
    return OperationResult.ok(result.to_dict(), elapsed_ms=timer())


def reset_marker(ctx: OperationContext) -> OperationResult[dict[str, Any]]:
    """Forget the last sent period so the current month can be sent again."""
    timer = start_timer()
    ctx.services.markers.reset()
    return OperationResult.ok(ctx.services.markers.state().to_dict(), elapsed_ms=timer())


__all__ = ["get_config", "update_config", "get_status", "get_health", "run_attempt", "reset_marker"]
