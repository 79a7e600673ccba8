"""HTTP API (FastAPI)."""

from gst_audit.api.app import create_app

__all__ = ["create_app"]
