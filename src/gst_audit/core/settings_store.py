"""
Durable key/value settings store.

Holds the schedule configuration and the next armed wake-up as JSON
values in ``gst_settings``.  The send marker lives in its own table
because it needs a conditional update (see
:mod:`gst_audit.scheduling.marker`).
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from gst_audit.core.dialect import Dialect, SQLiteDialect
from gst_audit.core.errors import StorageError
from gst_audit.core.logging import get_logger

logger = get_logger(__name__)


class SettingsStore:
    """JSON values by key over a :class:`~gst_audit.core.protocols.Connection`."""

    def __init__(self, conn: Any, dialect: Dialect | None = None):
        self._conn = conn
        self._dialect = dialect or SQLiteDialect()

    def get(self, key: str, default: Any = None) -> Any:
        """Return the decoded value for *key*, or *default*."""
        ph = self._dialect.placeholder(0)
        row = self._conn.execute(f"SELECT value FROM gst_settings WHERE key = {ph}", (key,)).fetchone()
        if row is None:
            return default
        try:
            return json.loads(row[0])
        except (TypeError, ValueError):
            logger.warning("settings.undecodable", key=key)
            return default

    def set(self, key: str, value: Any) -> None:
        """Persist *value* (JSON encodable) under *key*."""
        sql = self._dialect.upsert("gst_settings", ["key", "value", "updated_at"], ["key"])
        now = datetime.now(UTC).isoformat()
        try:
            with self._conn.transaction() as conn:
                conn.execute(sql, (key, json.dumps(value), now))
        except Exception as e:
            raise StorageError(f"Could not save setting {key!r}", cause=e) from e

    def delete(self, key: str) -> None:
        ph = self._dialect.placeholder(0)
        with self._conn.transaction() as conn:
            conn.execute(f"DELETE FROM gst_settings WHERE key = {ph}", (key,))


__all__ = ["SettingsStore"]
