"""Service settings.

All runtime knobs live in one :class:`GstAuditSettings` object loaded from
environment variables prefixed with ``GST_AUDIT_`` and an optional ``.env``
file.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** type-checked at startup
    - **Environment-driven:** env vars and .env files
    - **Sensible defaults:** works out of the box against a local SQLite file

Examples:
    >>> from gst_audit.core.settings import GstAuditSettings
    >>> settings = GstAuditSettings(smtp_host="smtp.example.in")
    >>> settings.attempt_timeout_seconds
    300.0

Tags:
    settings, configuration, pydantic, environment
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GstAuditSettings(BaseSettings):
    """Settings for the GST audit service.

    Order of precedence (highest → lowest):
        1. Environment variables (``GST_AUDIT_SMTP_HOST``, etc.)
        2. ``.env`` file
        3. Defaults below
    """

    model_config = SettingsConfigDict(
        env_prefix="GST_AUDIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Server ───────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8000, description="Bind port")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool | None = Field(default=None, description="JSON logs (None = auto by tty)")

    # ── API ──────────────────────────────────────────────────────────────
    api_prefix: str = Field(default="/api/v1", description="URL prefix for all endpoints")
    api_title: str = Field(default="GST Audit API", description="OpenAPI title")
    api_version: str = Field(default="0.1.0", description="OpenAPI version string")

    # ── Database ─────────────────────────────────────────────────────────
    database_url: str = Field(default="sqlite:///gst_audit.db", description="Connection URL")
    data_dir: str = Field(default="~/.gst-audit", description="Directory for relative SQLite files")

    # ── Mail ─────────────────────────────────────────────────────────────
    smtp_host: str = Field(default="localhost", description="SMTP server")
    smtp_port: int = Field(default=587, description="SMTP port")
    smtp_user: str | None = Field(default=None, description="SMTP login")
    smtp_password: str | None = Field(default=None, description="SMTP password")
    smtp_use_tls: bool = Field(default=True, description="STARTTLS before login")
    smtp_timeout_seconds: float = Field(default=30.0, description="Socket timeout for SMTP")
    mail_from: str = Field(default="gst-audit@localhost", description="Sender address")
    store_name: str = Field(default="Store", description="Store name used in mail subject/body")

    # ── Scheduling ───────────────────────────────────────────────────────
    timers_enabled: bool = Field(default=True, description="Start background timers with the API")
    hourly_check_seconds: float = Field(default=3600.0, description="Hourly health-check interval")
    fast_check_seconds: float = Field(default=240.0, description="Sub-5-minute health-check interval")
    attempt_timeout_seconds: float = Field(default=300.0, description="Upper bound for build + dispatch")
    claim_ttl_seconds: int = Field(default=900, description="Expiry of an in-flight period claim")
    opportunistic_enabled: bool = Field(default=True, description="Let API traffic re-arm an overdue trigger")
    opportunistic_min_interval_seconds: float = Field(default=60.0, description="Throttle for traffic-driven attempts")

    # ── Reporting ────────────────────────────────────────────────────────
    tax_schema_ttl_seconds: int = Field(default=3600, description="Tax class/rate cache TTL")

    # ── Access log ───────────────────────────────────────────────────────
    geolocation_enabled: bool = Field(default=False, description="Resolve caller IPs to a location")
    geolocation_url: str = Field(
        default="http://ip-api.com/json/{ip}",
        description="JSON geolocation endpoint; {ip} is substituted",
    )
    geolocation_timeout_seconds: float = Field(default=3.0, description="Geolocation request timeout")

    @model_validator(mode="after")
    def _claim_outlives_attempt(self) -> GstAuditSettings:
        # A claim must outlive the attempt holding it
        if self.attempt_timeout_seconds >= self.claim_ttl_seconds:
            raise ValueError(
                f"attempt_timeout_seconds ({self.attempt_timeout_seconds}) must be below "
                f"claim_ttl_seconds ({self.claim_ttl_seconds})"
            )
        return self


@lru_cache(maxsize=1)
def get_settings() -> GstAuditSettings:
    """Cached settings, loaded once per process."""
    return GstAuditSettings()


__all__ = ["GstAuditSettings", "get_settings"]
