"""Tests for service settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from gst_audit.core.settings import GstAuditSettings


class TestGstAuditSettings:
    def test_defaults_keep_claim_longer_than_attempt(self):
        settings = GstAuditSettings(_env_file=None)
        assert settings.attempt_timeout_seconds < settings.claim_ttl_seconds

    @pytest.mark.parametrize("timeout", [900.0, 1200.0])
    def test_attempt_timeout_must_be_below_claim_ttl(self, timeout):
        with pytest.raises(ValidationError, match="claim_ttl_seconds"):
            GstAuditSettings(attempt_timeout_seconds=timeout, claim_ttl_seconds=900, _env_file=None)

    def test_env_values_are_checked_together(self, monkeypatch):
        monkeypatch.setenv("GST_AUDIT_ATTEMPT_TIMEOUT_SECONDS", "60")
        monkeypatch.setenv("GST_AUDIT_CLAIM_TTL_SECONDS", "30")
        with pytest.raises(ValidationError):
            GstAuditSettings(_env_file=None)

    def test_shorter_timeout_accepted(self):
        settings = GstAuditSettings(attempt_timeout_seconds=60, claim_ttl_seconds=120, _env_file=None)
        assert settings.claim_ttl_seconds == 120
