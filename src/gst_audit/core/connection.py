"""
Connection factory.

``create_connection()`` turns a URL, path or keyword into a
:class:`~gst_audit.core.sqlite_conn.SqliteConnection` plus metadata.

Examples:
    >>> conn, info = create_connection("memory", init_schema=True)
    >>> info.persistent
    False
    >>> conn, info = create_connection("sqlite:///gst.db", data_dir="/var/lib/gst-audit")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from gst_audit.core.errors import ConfigError
from gst_audit.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConnectionInfo:
    """Metadata about a database connection."""

    backend: str
    persistent: bool
    url: str
    resolved_path: str | None = None

    def __repr__(self) -> str:
        parts = [f"backend={self.backend!r}", f"persistent={self.persistent}"]
        if self.resolved_path:
            parts.append(f"path={self.resolved_path!r}")
        else:
            parts.append(f"url={self.url!r}")
        return f"ConnectionInfo({', '.join(parts)})"


def _create_sqlite_memory() -> tuple[Any, ConnectionInfo]:
    from gst_audit.core.sqlite_conn import SqliteConnection

    conn = SqliteConnection(":memory:")
    return conn, ConnectionInfo(backend="sqlite", persistent=False, url=":memory:")


def _create_sqlite_file(path_str: str, data_dir: str | None) -> tuple[Any, ConnectionInfo]:
    from gst_audit.core.sqlite_conn import SqliteConnection

    path = Path(path_str).expanduser()
    if not path.is_absolute() and data_dir:
        path = Path(data_dir).expanduser() / path
    path.parent.mkdir(parents=True, exist_ok=True)
    resolved = str(path.resolve())
    conn = SqliteConnection(resolved)
    # WAL lets the webhook read while a timer thread holds a write claim
    conn.execute("PRAGMA journal_mode=WAL")
    info = ConnectionInfo(backend="sqlite", persistent=True, url=path_str, resolved_path=resolved)
    return conn, info


def _parse_url(db: str | None) -> tuple[str, str]:
    """Parse a database URL into ``(scheme, target)``.

    scheme is one of ``"memory"``, ``"sqlite"``, ``"unsupported"``.
    """
    if db is None or db in ("", "memory", ":memory:"):
        return "memory", ":memory:"

    for prefix in ("sqlite:///", "sqlite://"):
        if db.startswith(prefix):
            path = db[len(prefix):]
            if not path or path == ":memory:":
                return "memory", ":memory:"
            return "sqlite", path

    if "://" in db:
        return "unsupported", db

    return "sqlite", db


def create_connection(
    db: str | None = None,
    *,
    init_schema: bool = False,
    data_dir: str | None = None,
) -> tuple[Any, ConnectionInfo]:
    """Create a database connection from a URL, path, or keyword.

    Parameters
    ----------
    db:
        ``None``/``"memory"`` for in-memory SQLite, ``"sqlite:///path"`` or a
        bare path for a SQLite file.
    init_schema:
        If ``True``, create all tables (idempotent).
    data_dir:
        Base directory for relative SQLite paths.

    Raises
    ------
    ConfigError
        The URL names a backend other than SQLite.
    """
    scheme, target = _parse_url(db)

    if scheme == "memory":
        conn, info = _create_sqlite_memory()
    elif scheme == "sqlite":
        conn, info = _create_sqlite_file(target, data_dir)
    else:
        raise ConfigError(f"Unsupported database URL: {target}")

    if init_schema:
        from gst_audit.core.schema import create_core_tables

        create_core_tables(conn)

    logger.debug("db.connected", info=repr(info))
    return conn, info


__all__ = ["ConnectionInfo", "create_connection"]
