"""
Error hierarchy for the GST audit service.

Every error the service raises on purpose extends :class:`GstAuditError`,
which carries a category, retry semantics and structured context so the
scheduler, the API and the CLI can all decide what to do with it without
string matching.

Manifesto:
    - **Single base class:** all service errors inherit from GstAuditError
    - **Explicit retry semantics:** transient failures say so
    - **Rich context:** period, recipient, trigger path travel with the error
    - **Chaining:** the original exception is kept as ``cause``

Architecture:
    ::

        GstAuditError
        ├── TransientError (retryable)
        │   ├── DispatchError
        │   ├── StorageError
        │   └── TimeoutExpired (core.timeout)
        ├── ValidationError
        ├── NotFoundError
        ├── ConfigError
        └── ScheduleError

Examples:
    >>> err = DispatchError("SMTP refused").with_context(recipient="a@b.in")
    >>> err.retryable
    True
    >>> err.to_dict()["category"]
    'DELIVERY'

Guardrails:
    ❌ DON'T: retry a TransientError in a tight loop inside one attempt
    ✅ DO: fail the attempt and let the next trigger retry
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Top-level classification used for routing and HTTP mapping."""

    NETWORK = "NETWORK"
    STORAGE = "STORAGE"
    DELIVERY = "DELIVERY"
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    CONFIG = "CONFIG"
    SCHEDULING = "SCHEDULING"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Structured context attached to an error.

    Attributes:
        period: Reporting period ("YYYY-MM") being processed
        trigger: Trigger path that started the attempt
        recipient: Mail recipient involved in the failure
        attempt_id: Identifier of the trigger attempt
        metadata: Additional key/value pairs
    """

    period: str | None = None
    trigger: str | None = None
    recipient: str | None = None
    attempt_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["period", "trigger", "recipient", "attempt_id"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class GstAuditError(Exception):
    """Base exception for all service errors.

    Subclasses set ``default_category`` and ``default_retryable``.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        retry_after: int | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.retry_after = retry_after
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> GstAuditError:
        """Add context to this error (fluent API)."""
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if self.retry_after is not None:
            result["retry_after"] = self.retry_after
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TRANSIENT ERRORS (retried by the next trigger)
# =============================================================================


class TransientError(GstAuditError):
    """Temporary failure that a later trigger may get past."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class DispatchError(TransientError):
    """Report could not be built or delivered."""

    default_category = ErrorCategory.DELIVERY


class StorageError(TransientError):
    """Database or file system failure."""

    default_category = ErrorCategory.STORAGE


# =============================================================================
# PERMANENT ERRORS
# =============================================================================


class ValidationError(GstAuditError):
    """Input failed validation (bad period, bad product id, ...)."""

    default_category = ErrorCategory.VALIDATION

    def __init__(self, message: str, *, field: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.field = field
        if field:
            self.context.metadata["field"] = field


class NotFoundError(GstAuditError):
    """Referenced entity does not exist."""

    default_category = ErrorCategory.NOT_FOUND


class ConfigError(GstAuditError):
    """Service is misconfigured (no SMTP host, unreadable settings)."""

    default_category = ErrorCategory.CONFIG


class ScheduleError(GstAuditError):
    """Wake-up could not be armed or the scheduler is in a bad state."""

    default_category = ErrorCategory.SCHEDULING


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "GstAuditError",
    "TransientError",
    "DispatchError",
    "StorageError",
    "ValidationError",
    "NotFoundError",
    "ConfigError",
    "ScheduleError",
]
