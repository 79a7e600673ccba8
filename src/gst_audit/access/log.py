"""
Webhook access log.

Every webhook call, authenticated or not, appends one row to
``gst_access_logs``.  Failed authentication is recorded with a null key
reference so probing with guessed keys stays visible.  Entries reference
keys by id only; removing a key leaves its entries in place.

:meth:`AccessLogger.record` never raises.  The webhook must answer even
when the log table is locked or the geolocation service is down.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from gst_audit.core.dialect import Dialect, SQLiteDialect
from gst_audit.core.logging import get_logger
from gst_audit.core.protocols import Connection

from .geo import GeoLocator, NullGeoLocator
from .useragent import parse_browser, parse_os

logger = get_logger(__name__)

MAX_USER_AGENT = 512
MAX_ERROR = 1000


@dataclass(frozen=True)
class RequestContext:
    """Origin metadata of one webhook request."""

    ip: str | None = None
    user_agent: str | None = None


@dataclass(frozen=True)
class AccessLogEntry:
    id: int
    key_id: int | None
    created_at: str
    ip_address: str | None
    user_agent: str | None
    browser: str
    os: str
    location: str
    success: bool
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "key_id": self.key_id,
            "created_at": self.created_at,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "browser": self.browser,
            "os": self.os,
            "location": self.location,
            "success": self.success,
            "error_message": self.error_message,
        }


_COLUMNS = [
    "key_id",
    "created_at",
    "ip_address",
    "user_agent",
    "browser",
    "os",
    "location",
    "success",
    "error_message",
]


class AccessLogger:
    """Append-only writer and reader for webhook access entries."""

    def __init__(
        self,
        conn: Connection,
        geolocator: GeoLocator | None = None,
        dialect: Dialect | None = None,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ):
        self._conn = conn
        self._geo = geolocator or NullGeoLocator()
        self._dialect = dialect or SQLiteDialect()
        self._clock = clock

    def record(
        self,
        key_id: int | None,
        success: bool,
        error: str | None = None,
        context: RequestContext | None = None,
    ) -> int | None:
        """Append one entry. Returns its id, or ``None`` if it could not be written."""
        context = context or RequestContext()
        try:
            user_agent = (context.user_agent or "")[:MAX_USER_AGENT]
            try:
                location = self._geo.locate(context.ip)
            except Exception as e:
                logger.debug("access_log.geo_failed", error=str(e))
                location = "Unknown"

            values = (
                key_id,
                self._clock().isoformat(),
                context.ip or "",
                user_agent,
                parse_browser(user_agent),
                parse_os(user_agent),
                location,
                1 if success else 0,
                (error or "")[:MAX_ERROR],
            )
            with self._conn.transaction() as conn:
                cursor = conn.execute(
                    f"INSERT INTO gst_access_logs ({', '.join(_COLUMNS)}) "
                    f"VALUES ({self._dialect.placeholders(len(_COLUMNS))})",
                    values,
                )
            return cursor.lastrowid
        except Exception as e:
            logger.warning("access_log.write_failed", error=str(e), success=success)
            return None

    def list_entries(self, limit: int = 50, offset: int = 0) -> list[AccessLogEntry]:
        """Entries newest first."""
        limit = max(1, min(int(limit), 1000))
        offset = max(0, int(offset))
        ph = self._dialect.placeholder
        rows = self._conn.execute(
            f"SELECT id, {', '.join(_COLUMNS)} FROM gst_access_logs "
            f"ORDER BY id DESC LIMIT {ph(0)} OFFSET {ph(1)}",
            (limit, offset),
        ).fetchall()
        return [
            AccessLogEntry(
                id=int(r[0]),
                key_id=r[1],
                created_at=r[2],
                ip_address=r[3],
                user_agent=r[4],
                browser=r[5],
                os=r[6],
                location=r[7],
                success=bool(r[8]),
                error_message=r[9],
            )
            for r in rows
        ]

    def count(self, *, success: bool | None = None) -> int:
        if success is None:
            row = self._conn.execute("SELECT COUNT(*) FROM gst_access_logs").fetchone()
        else:
            row = self._conn.execute(
                f"SELECT COUNT(*) FROM gst_access_logs WHERE success = {self._dialect.placeholder(0)}",
                (1 if success else 0,),
            ).fetchone()
        return int(row[0])


__all__ = ["AccessLogEntry", "AccessLogger", "RequestContext"]
