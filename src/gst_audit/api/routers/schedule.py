"""
Schedule router.

GET    /schedule
PUT    /schedule
GET    /schedule/status
GET    /schedule/health
POST   /schedule/attempt
DELETE /schedule/marker
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from gst_audit.api.deps import OpContext
from gst_audit.api.middleware.errors import handle_result_error
from gst_audit.api.schemas.common import SuccessResponse

router = APIRouter(prefix="/schedule")


class UpdateScheduleBody(BaseModel):
    """Fields left out keep their stored value; bad values are normalized."""

    enabled: bool | None = None
    recipients: list[str] | str | None = Field(default=None, description="List or comma separated string")
    day_of_month: int | str | None = None
    time_of_day: str | None = Field(default=None, description="HH:MM")


@router.get("", response_model=SuccessResponse[dict[str, Any]])
def get_schedule(ctx: OpContext):
    from gst_audit.ops.schedule import get_config

    result = get_config(ctx)
    return SuccessResponse(data=result.data, elapsed_ms=result.elapsed_ms)


@router.put("", response_model=SuccessResponse[dict[str, Any]])
def update_schedule(body: UpdateScheduleBody, ctx: OpContext):
    """Update the schedule and re-arm the next wake-up."""
    from gst_audit.ops.schedule import update_config

    result = update_config(ctx, **body.model_dump())
    if not result.success:
        return handle_result_error(result)
    return SuccessResponse(data=result.data, elapsed_ms=result.elapsed_ms, warnings=result.warnings)


@router.get("/status", response_model=SuccessResponse[dict[str, Any]])
def schedule_status(ctx: OpContext):
    """Config, send marker, next run, timer health and last attempt."""
    from gst_audit.ops.schedule import get_status

    result = get_status(ctx)
    return SuccessResponse(data=result.data, elapsed_ms=result.elapsed_ms)


@router.get("/health", response_model=SuccessResponse[dict[str, Any]])
def schedule_health(ctx: OpContext):
    from gst_audit.ops.schedule import get_health

    result = get_health(ctx)
    return SuccessResponse(data=result.data, elapsed_ms=result.elapsed_ms)


@router.post("/attempt", response_model=SuccessResponse[dict[str, Any]])
def schedule_attempt(ctx: OpContext):
    """Run one idempotent attempt now (sends only if due and unsent)."""
    from gst_audit.ops.schedule import run_attempt

    result = run_attempt(ctx, trigger="api")
    if not result.success:
        return handle_result_error(result)
    return SuccessResponse(data=result.data, elapsed_ms=result.elapsed_ms)


@router.delete("/marker", response_model=SuccessResponse[dict[str, Any]])
def reset_marker(ctx: OpContext):
    """Forget the last sent period."""
    from gst_audit.ops.schedule import reset_marker as _reset

    result = _reset(ctx)
    return SuccessResponse(data=result.data, elapsed_ms=result.elapsed_ms)
