"""
Timeout enforcement for blocking operations.

A trigger attempt calls the order source and the mail transport, either of
which can hang.  :func:`run_with_timeout` bounds such a call by running it
on a worker thread and abandoning it when the deadline passes.

Manifesto:
    Every external call should have a timeout.  A hung attempt must turn
    into a failed attempt so the next trigger can retry.

Guardrails:
    ❌ DON'T: assume the worker stops when the timeout fires (threads cannot
       be killed; the period marker is the safety net)
    ✅ DO: treat TimeoutExpired as a failed, retryable attempt

Examples:
    >>> run_with_timeout(lambda: 42, timeout_seconds=1.0)
    42
"""

from __future__ import annotations

import concurrent.futures
import time
from collections.abc import Callable
from typing import Any

from gst_audit.core.errors import ErrorCategory, TransientError


class TimeoutExpired(TransientError):
    """Raised when an operation exceeds its deadline.

    Attributes:
        timeout: The timeout value that was exceeded
        elapsed: How long the operation ran before being abandoned
        operation: Name/description of the operation
    """

    default_category = ErrorCategory.NETWORK

    def __init__(
        self,
        timeout: float,
        elapsed: float | None = None,
        operation: str = "operation",
    ):
        self.timeout = timeout
        self.elapsed = elapsed
        self.operation = operation
        msg = f"Operation '{operation}' timed out after {timeout}s"
        if elapsed is not None:
            msg += f" (ran for {elapsed:.2f}s)"
        super().__init__(msg)


def run_with_timeout[T](
    func: Callable[..., T],
    timeout_seconds: float,
    operation: str | None = None,
    args: tuple[Any, ...] | None = None,
    kwargs: dict[str, Any] | None = None,
) -> T:
    """Run a callable with a timeout on a dedicated worker thread.

    Args:
        func: Callable to execute
        timeout_seconds: Maximum execution time
        operation: Name for error messages
        args: Positional arguments for func
        kwargs: Keyword arguments for func

    Returns:
        Result of ``func(*args, **kwargs)``

    Raises:
        TimeoutExpired: If execution exceeds timeout
        Exception: Any exception raised by func
    """
    if timeout_seconds <= 0:
        raise ValueError(f"Timeout must be positive, got {timeout_seconds}")

    start = time.monotonic()
    executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="gst-audit-timeout")
    future = executor.submit(func, *(args or ()), **(kwargs or {}))
    try:
        return future.result(timeout=timeout_seconds)
    except concurrent.futures.TimeoutError:
        # The worker keeps running; we only stop waiting for it
        raise TimeoutExpired(
            timeout=timeout_seconds,
            elapsed=time.monotonic() - start,
            operation=operation or getattr(func, "__name__", "unknown"),
        ) from None
    finally:
        executor.shutdown(wait=False)


__all__ = ["TimeoutExpired", "run_with_timeout"]
