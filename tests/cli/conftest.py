"""CLI test fixtures."""

from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _keep_test_logging(monkeypatch):
    """Leave structlog unconfigured; cached loggers would outlive the runner's stdout."""
    monkeypatch.setattr("gst_audit.core.logging.configure_logging", lambda *args, **kwargs: None)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    from gst_audit.core.settings import get_settings

    monkeypatch.setenv("GST_AUDIT_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("GST_AUDIT_TIMERS_ENABLED", "false")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
