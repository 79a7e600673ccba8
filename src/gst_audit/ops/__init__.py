"""
Operations layer.

Plain functions taking an :class:`~gst_audit.ops.context.OperationContext`
and returning an :class:`~gst_audit.ops.result.OperationResult`.  The API
routers and the CLI commands are thin wrappers around them.
"""

from gst_audit.ops.context import OperationContext, Services, build_services
from gst_audit.ops.result import OperationError, OperationResult, PagedResult

__all__ = [
    "OperationContext",
    "OperationError",
    "OperationResult",
    "PagedResult",
    "Services",
    "build_services",
]
