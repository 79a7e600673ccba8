"""Tests for run_with_timeout."""

from __future__ import annotations

import threading

import pytest

from gst_audit.core.errors import TransientError
from gst_audit.core.timeout import TimeoutExpired, run_with_timeout


class TestRunWithTimeout:
    def test_returns_result(self):
        assert run_with_timeout(lambda a, b: a + b, 1.0, args=(2, 3)) == 5

    def test_kwargs(self):
        assert run_with_timeout(lambda *, x: x * 2, 1.0, kwargs={"x": 4}) == 8

    def test_propagates_exception(self):
        def boom():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            run_with_timeout(boom, 1.0)

    def test_times_out(self):
        release = threading.Event()
        try:
            with pytest.raises(TimeoutExpired) as exc_info:
                run_with_timeout(release.wait, 0.05, operation="slow", args=(5,))
        finally:
            release.set()
        err = exc_info.value
        assert err.timeout == 0.05
        assert err.operation == "slow"
        assert isinstance(err, TransientError)
        assert err.retryable

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValueError):
            run_with_timeout(lambda: None, 0)
