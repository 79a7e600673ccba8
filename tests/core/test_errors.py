"""Tests for the error hierarchy."""

from __future__ import annotations

from gst_audit.core.errors import (
    ConfigError,
    DispatchError,
    ErrorCategory,
    GstAuditError,
    StorageError,
    ValidationError,
)


class TestGstAuditError:
    def test_defaults(self):
        err = GstAuditError("oops")
        assert err.category == ErrorCategory.INTERNAL
        assert err.retryable is False
        assert str(err) == "oops"

    def test_with_context_known_and_extra_keys(self):
        err = DispatchError("smtp down").with_context(period="2024-02", server="mx1")
        d = err.to_dict()
        assert d["category"] == "DELIVERY"
        assert d["retryable"] is True
        assert d["context"] == {"period": "2024-02", "server": "mx1"}

    def test_cause_is_chained(self):
        cause = OSError("disk")
        err = StorageError("write failed", cause=cause)
        assert err.__cause__ is cause
        assert err.to_dict()["cause"] == "disk"

    def test_validation_field(self):
        err = ValidationError("bad period", field="period")
        assert err.field == "period"
        assert err.to_dict()["context"]["field"] == "period"

    def test_config_not_retryable(self):
        assert ConfigError("no smtp").retryable is False
