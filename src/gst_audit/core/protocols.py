"""
Structural protocols shared across the service.

Every module that talks to the database takes a :class:`Connection`, so the
same code runs against the bundled SQLite adapter or a psycopg connection.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Connection(Protocol):
    """Minimal synchronous connection interface.

    ``execute`` returns a cursor-like object exposing ``rowcount``; the
    connection itself exposes ``fetchone``/``fetchall`` for the last
    statement.
    """

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute a SQL statement."""
        ...

    def executemany(self, sql: str, params: list[tuple]) -> Any:
        """Execute a statement for each parameter tuple."""
        ...

    def fetchone(self) -> Any:
        """Fetch one row from the last query."""
        ...

    def fetchall(self) -> list[Any]:
        """Fetch all rows from the last query."""
        ...

    def commit(self) -> None:
        """Commit the current transaction."""
        ...

    def rollback(self) -> None:
        """Roll back the current transaction."""
        ...

    def transaction(self) -> AbstractContextManager[Any]:
        """Exclusive unit of work: commit on exit, roll back on error."""
        ...


__all__ = ["Connection"]
