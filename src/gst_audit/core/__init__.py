"""Core primitives: logging, errors, settings, persistence and small utilities."""

from gst_audit.core.errors import (
    ConfigError,
    DispatchError,
    ErrorCategory,
    GstAuditError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from gst_audit.core.logging import configure_logging, get_logger
from gst_audit.core.period import Period
from gst_audit.core.settings import GstAuditSettings, get_settings

__all__ = [
    "ConfigError",
    "DispatchError",
    "ErrorCategory",
    "GstAuditError",
    "GstAuditSettings",
    "NotFoundError",
    "Period",
    "StorageError",
    "ValidationError",
    "configure_logging",
    "get_logger",
    "get_settings",
]
