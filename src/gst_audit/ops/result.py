"""
Operation result envelope.

Every operator-facing operation (manual send, test send, key rotation, HSN
save, ...) returns an :class:`OperationResult` so the API and the CLI
render success and failure the same way.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from gst_audit.core.errors import ErrorCategory, GstAuditError
from gst_audit.core.pagination import page_count


@dataclass(frozen=True, slots=True)
class OperationError:
    """Structured error detail for failed operations.

    Attributes:
        code: Machine-readable code (``NOT_FOUND``, ``VALIDATION_FAILED``, …).
        message: Human-readable description of the error.
        category: Optional :class:`ErrorCategory` for routing.
        details: Extra key/value context.
        retryable: Whether the caller should retry the operation.
    """

    code: str
    message: str
    category: ErrorCategory | None = None
    details: dict[str, Any] = field(default_factory=dict)
    retryable: bool = False


_CATEGORY_TO_CODE: dict[ErrorCategory, str] = {
    ErrorCategory.VALIDATION: "VALIDATION_FAILED",
    ErrorCategory.NOT_FOUND: "NOT_FOUND",
    ErrorCategory.CONFIG: "CONFIG",
    ErrorCategory.DELIVERY: "TRANSIENT",
    ErrorCategory.NETWORK: "TRANSIENT",
    ErrorCategory.STORAGE: "TRANSIENT",
}


@dataclass
class OperationResult[T]:
    """Envelope returned by every operation function.

    Use :meth:`ok`, :meth:`fail` or :meth:`from_error` rather than the
    constructor.
    """

    success: bool
    data: T | None = None
    error: OperationError | None = None
    warnings: list[str] = field(default_factory=list)
    elapsed_ms: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(
        cls,
        data: T,
        *,
        warnings: list[str] | None = None,
        elapsed_ms: float = 0.0,
        metadata: dict[str, Any] | None = None,
    ) -> OperationResult[T]:
        """Create a successful result."""
        return cls(
            success=True,
            data=data,
            warnings=warnings or [],
            elapsed_ms=elapsed_ms,
            metadata=metadata or {},
        )

    @classmethod
    def fail(
        cls,
        code: str,
        message: str,
        *,
        category: ErrorCategory | None = None,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
        elapsed_ms: float = 0.0,
    ) -> OperationResult[T]:
        """Create a failed result."""
        return cls(
            success=False,
            error=OperationError(
                code=code,
                message=message,
                category=category,
                details=details or {},
                retryable=retryable,
            ),
            elapsed_ms=elapsed_ms,
        )

    @classmethod
    def from_error(cls, error: GstAuditError, *, elapsed_ms: float = 0.0) -> OperationResult[T]:
        """Failed result mirroring a service error."""
        return cls.fail(
            _CATEGORY_TO_CODE.get(error.category, "INTERNAL"),
            error.message,
            category=error.category,
            details=error.context.to_dict(),
            retryable=error.retryable,
            elapsed_ms=elapsed_ms,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a plain dict (for JSON responses)."""
        d: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            d["data"] = self.data
        if self.error is not None:
            d["error"] = {
                "code": self.error.code,
                "message": self.error.message,
                "retryable": self.error.retryable,
            }
            if self.error.details:
                d["error"]["details"] = self.error.details
        if self.warnings:
            d["warnings"] = self.warnings
        if self.elapsed_ms:
            d["elapsed_ms"] = round(self.elapsed_ms, 2)
        if self.metadata:
            d["metadata"] = self.metadata
        return d


@dataclass
class PagedResult[T](OperationResult[list[T]]):
    """Paginated result for list operations.

    ``page`` is 1-based; ``pages`` is at least 1 so an empty listing still
    renders as "page 1 of 1".
    """

    total: int = 0
    page: int = 1
    per_page: int = 20
    pages: int = 1

    @classmethod
    def from_items(
        cls,
        items: list[T],
        total: int,
        *,
        page: int,
        per_page: int,
        elapsed_ms: float = 0.0,
        metadata: dict[str, Any] | None = None,
    ) -> PagedResult[T]:
        """Convenience factory that computes ``pages``."""
        return cls(
            success=True,
            data=items,
            total=total,
            page=page,
            per_page=per_page,
            pages=page_count(total, per_page),
            elapsed_ms=elapsed_ms,
            metadata=metadata or {},
        )

    @property
    def has_more(self) -> bool:
        return self.page < self.pages


def start_timer() -> Callable[[], float]:
    """Return a callable that yields elapsed milliseconds since creation."""
    t0 = time.monotonic()
    return lambda: (time.monotonic() - t0) * 1000


__all__ = ["OperationError", "OperationResult", "PagedResult", "start_timer"]
