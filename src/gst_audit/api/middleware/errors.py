"""
Error handling: maps service errors and failed operation results to
RFC 7807 responses.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from gst_audit.api.schemas.common import ErrorDetail, ProblemDetail
from gst_audit.core.errors import ErrorCategory, GstAuditError
from gst_audit.core.logging import get_logger

logger = get_logger(__name__)

# ── Error code → HTTP status mapping ─────────────────────────────────────

ERROR_CODE_TO_STATUS: dict[str, int] = {
    "NOT_FOUND": 404,
    "VALIDATION_FAILED": 400,
    "CONFIG": 500,
    "TRANSIENT": 503,
    "INTERNAL": 500,
}

CATEGORY_TO_STATUS: dict[ErrorCategory, int] = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.NETWORK: 503,
    ErrorCategory.STORAGE: 503,
    ErrorCategory.DELIVERY: 503,
}


def status_for_error_code(code: str) -> int:
    """Resolve an ops error code to HTTP status, defaulting to 500."""
    return ERROR_CODE_TO_STATUS.get(code, 500)


def problem_response(
    *,
    status: int,
    title: str,
    detail: str = "",
    instance: str = "",
    errors: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    """Build a RFC 7807 JSON error response."""
    body = ProblemDetail(title=title, status=status, detail=detail, instance=instance)
    if errors:
        body.errors = [ErrorDetail(**e) for e in errors]
    return JSONResponse(
        status_code=status,
        content=body.model_dump(),
        media_type="application/problem+json",
    )


def handle_result_error(result: Any, instance: str = "") -> JSONResponse:
    """Convert a failed ``OperationResult`` into a problem response."""
    code = result.error.code if result.error else "INTERNAL"
    message = result.error.message if result.error else "Operation failed"
    return problem_response(
        status=status_for_error_code(code),
        title=message,
        detail=code,
        instance=instance,
    )


async def gst_audit_error_handler(request: Request, exc: GstAuditError) -> JSONResponse:
    """Service errors that escaped an operation."""
    status = CATEGORY_TO_STATUS.get(exc.category, 500)
    field = getattr(exc, "field", None)
    errors = [{"code": exc.category.value, "message": exc.message, "field": field}] if field else None
    logger.warning("api.service_error", path=request.url.path, error=exc.message, status=status)
    return problem_response(
        status=status,
        title=exc.message,
        detail=exc.category.value,
        instance=str(request.url.path),
        errors=errors,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions; returns 500 with ProblemDetail."""
    logger.error("api.unhandled_error", path=request.url.path, error=str(exc), exc_info=exc)
    return problem_response(
        status=500,
        title="Internal Server Error",
        detail=str(exc) if request.app.state.settings.debug else "An unexpected error occurred.",
        instance=str(request.url.path),
    )
