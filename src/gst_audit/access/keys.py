"""
Webhook access keys.

One key is active at a time.  Rotation is a hard revoke: the old value
stops authenticating the moment the new one is committed, there is no
grace period.  Old keys stay in the table (inactive) so access log entries
can still name the key they were made with.

The database enforces "at most one active key" with a partial unique index
on ``is_active``; rotation deactivates and inserts inside one transaction.
"""

from __future__ import annotations

import hmac
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from gst_audit.core.dialect import Dialect, SQLiteDialect
from gst_audit.core.errors import StorageError
from gst_audit.core.logging import get_logger
from gst_audit.core.protocols import Connection

logger = get_logger(__name__)

KEY_BYTES = 32  # 256 bits, 64 hex characters


def generate_key_value() -> str:
    return secrets.token_hex(KEY_BYTES)


@dataclass(frozen=True)
class AccessKey:
    """A webhook key and its lifecycle timestamps."""

    id: int
    value: str
    is_active: bool
    created_at: str
    deactivated_at: str | None = None

    @property
    def masked(self) -> str:
        """First and last four characters, for listings."""
        return f"{self.value[:4]}…{self.value[-4:]}"

    def to_dict(self, *, reveal: bool = False) -> dict[str, Any]:
        return {
            "id": self.id,
            "value": self.value if reveal else self.masked,
            "is_active": self.is_active,
            "created_at": self.created_at,
            "deactivated_at": self.deactivated_at,
        }


_COLUMNS = "id, key_value, is_active, created_at, deactivated_at"


def _row_to_key(row: Any) -> AccessKey:
    return AccessKey(
        id=int(row[0]),
        value=row[1],
        is_active=bool(row[2]),
        created_at=row[3],
        deactivated_at=row[4],
    )


class AccessKeyStore:
    """Create, rotate and look up webhook keys."""

    def __init__(self, conn: Connection, dialect: Dialect | None = None):
        self._conn = conn
        self._dialect = dialect or SQLiteDialect()

    def _ph(self, index: int) -> str:
        return self._dialect.placeholder(index - 1)

    def _active(self) -> AccessKey | None:
        try:
            row = self._conn.execute(
                f"SELECT {_COLUMNS} FROM gst_access_keys WHERE is_active = 1 ORDER BY id DESC LIMIT 1"
            ).fetchone()
        except Exception as e:
            raise StorageError("Could not read the active access key", cause=e) from e
        return _row_to_key(row) if row else None

    def current_key(self) -> AccessKey:
        """The active key, creating the first one if none exists."""
        key = self._active()
        if key is not None:
            return key

        # Concurrent bootstraps: the single-active index makes all but one insert a no-op
        sql = self._dialect.insert_or_ignore("gst_access_keys", ["key_value", "is_active", "created_at"])
        try:
            with self._conn.transaction() as conn:
                conn.execute(sql, (generate_key_value(), 1, datetime.now(UTC).isoformat()))
        except Exception as e:
            raise StorageError("Could not create access key", cause=e) from e

        key = self._active()
        if key is None:
            raise StorageError("Access key bootstrap produced no active key")
        logger.info("access_key.bootstrapped", key_id=key.id)
        return key

    def rotate(self) -> AccessKey:
        """Deactivate the active key and create a new one atomically.

        Readers on other threads see either the old key or the new one,
        never a moment with no active key.
        """
        now = datetime.now(UTC).isoformat()
        value = generate_key_value()
        try:
            with self._conn.transaction() as conn:
                cursor = conn.execute(
                    f"UPDATE gst_access_keys SET is_active = 0, deactivated_at = {self._ph(1)} WHERE is_active = 1",
                    (now,),
                )
                deactivated = cursor.rowcount
                conn.execute(
                    f"INSERT INTO gst_access_keys (key_value, is_active, created_at) "
                    f"VALUES ({self._ph(1)}, 1, {self._ph(2)})",
                    (value, now),
                )
        except Exception as e:
            raise StorageError("Access key rotation failed", cause=e) from e

        key = self.lookup(value)
        if key is None:
            raise StorageError("Rotated key not found after commit")
        logger.info("access_key.rotated", key_id=key.id, deactivated=deactivated)
        return key

    def lookup(self, value: str | None) -> AccessKey | None:
        """The active key matching *value*, or ``None``.

        Inactive keys never match.

        Raises:
            StorageError: the key table could not be read
        """
        if not value:
            return None
        key = self._active()
        if key is None:
            return None
        if hmac.compare_digest(key.value.encode(), value.encode()):
            return key
        return None

    def list_keys(self, limit: int = 50) -> list[AccessKey]:
        """Key history, newest first."""
        try:
            rows = self._conn.execute(
                f"SELECT {_COLUMNS} FROM gst_access_keys ORDER BY id DESC LIMIT {self._ph(1)}",
                (limit,),
            ).fetchall()
        except Exception as e:
            raise StorageError("Could not list access keys", cause=e) from e
        return [_row_to_key(r) for r in rows]

    def delete_key(self, key_id: int) -> bool:
        """Remove an inactive key from history. Its log entries are kept."""
        with self._conn.transaction() as conn:
            cursor = conn.execute(
                f"DELETE FROM gst_access_keys WHERE id = {self._ph(1)} AND is_active = 0",
                (key_id,),
            )
        return cursor.rowcount == 1


__all__ = ["AccessKey", "AccessKeyStore", "generate_key_value"]
