"""
SQL dialect helpers.

Stores build their SQL through a :class:`Dialect` so placeholders and
conflict handling are not hard-coded to SQLite.  Only the statements the
service actually issues are covered.

Examples:
    >>> d = SQLiteDialect()
    >>> d.insert_or_ignore("gst_settings", ["key", "value"])
    'INSERT OR IGNORE INTO gst_settings (key, value) VALUES (?, ?)'
"""

from __future__ import annotations

from typing import Protocol


class Dialect(Protocol):
    """SQL generation contract."""

    @property
    def name(self) -> str:
        """Dialect name (``sqlite``, ``postgresql``)."""
        ...

    def placeholder(self, index: int) -> str:
        """Parameter placeholder for position *index* (0-based)."""
        ...

    def placeholders(self, count: int) -> str:
        """Comma separated placeholders for *count* parameters."""
        ...

    def insert_or_ignore(self, table: str, columns: list[str]) -> str:
        """INSERT that silently skips rows violating a unique constraint."""
        ...

    def upsert(self, table: str, columns: list[str], key_columns: list[str]) -> str:
        """INSERT that updates non-key columns on key conflict."""
        ...


class SQLiteDialect:
    """SQLite dialect: ``?`` placeholders, ``INSERT OR IGNORE``."""

    @property
    def name(self) -> str:
        return "sqlite"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    def insert_or_ignore(self, table: str, columns: list[str]) -> str:
        cols = ", ".join(columns)
        ph = self.placeholders(len(columns))
        return f"INSERT OR IGNORE INTO {table} ({cols}) VALUES ({ph})"

    def upsert(self, table: str, columns: list[str], key_columns: list[str]) -> str:
        cols = ", ".join(columns)
        ph = self.placeholders(len(columns))
        keys = ", ".join(key_columns)
        updates = ", ".join(f"{c} = excluded.{c}" for c in columns if c not in key_columns)
        return f"INSERT INTO {table} ({cols}) VALUES ({ph}) ON CONFLICT ({keys}) DO UPDATE SET {updates}"


__all__ = ["Dialect", "SQLiteDialect"]
