"""SQLite connection adapter.

Wraps a raw :class:`sqlite3.Connection` to satisfy the
:class:`~gst_audit.core.protocols.Connection` protocol.

A bare ``sqlite3.Connection`` exposes ``execute()`` (returns a cursor)
but not ``fetchone()`` / ``fetchall()`` at the connection level.  This
adapter bridges the gap while still returning a fresh cursor from every
``execute`` so callers on different threads never read each other's
result sets.

One adapter is shared by the API worker threads and the trigger timers,
and SQLite keeps a single transaction per connection.  Every statement
and every :meth:`SqliteConnection.transaction` block therefore runs under
one reentrant lock: a reader on another thread never sees the middle of
a multi-statement write, and no thread's ``commit``/``rollback`` ends a
transaction another thread is still building.

Usage::

    from gst_audit.core.sqlite_conn import SqliteConnection

    conn = SqliteConnection(":memory:")
    with conn.transaction():
        conn.execute("UPDATE ...")
        conn.execute("INSERT ...")
    row = conn.execute("SELECT 1").fetchone()
    conn.close()
"""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any


class SqliteConnection:
    """Adapter: ``sqlite3.Connection`` → ``Connection`` protocol."""

    def __init__(
        self,
        path: str = ":memory:",
        *,
        row_factory: Any = sqlite3.Row,
        timeout: float = 30.0,
    ) -> None:
        self._path = path
        self._conn = sqlite3.connect(path, check_same_thread=False, timeout=timeout)
        self._conn.row_factory = row_factory
        self._cursor: sqlite3.Cursor | None = None
        self._lock = threading.RLock()

    # -- Connection protocol -----------------------------------------------

    def execute(self, sql: str, params: tuple = ()) -> Any:
        with self._lock:
            cursor = self._conn.execute(sql, params)
            self._cursor = cursor
            return cursor

    def executemany(self, sql: str, params: list[tuple]) -> Any:
        with self._lock:
            cursor = self._conn.executemany(sql, params)
            self._cursor = cursor
            return cursor

    def fetchone(self) -> Any:
        return self._cursor.fetchone() if self._cursor is not None else None

    def fetchall(self) -> list:
        return self._cursor.fetchall() if self._cursor is not None else []

    def commit(self) -> None:
        with self._lock:
            self._conn.commit()

    def rollback(self) -> None:
        with self._lock:
            self._conn.rollback()

    @contextmanager
    def transaction(self) -> Iterator[SqliteConnection]:
        """Hold the connection for one unit of work.

        Commits on exit, rolls back and re-raises on error.  Other threads
        block on their next statement until the block ends.
        """
        with self._lock:
            try:
                yield self
                self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # -- convenience -------------------------------------------------------

    @property
    def path(self) -> str:
        return self._path

    @property
    def raw(self) -> sqlite3.Connection:
        """Access the underlying ``sqlite3.Connection`` (e.g. for pragmas)."""
        return self._conn

    def __repr__(self) -> str:
        return f"SqliteConnection({self._path!r})"
