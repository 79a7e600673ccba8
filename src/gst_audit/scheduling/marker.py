"""
Send marker: the record of the last period whose report went out.

The marker is the single synchronization point between every trigger path.
It is one row in ``gst_send_marker`` and every transition is a single
conditional ``UPDATE`` whose ``rowcount`` tells the caller whether it won:

::

    claim(P)    period != P and no live claim   → claim_period = P, claimed_by = token
    confirm(P)  claimed_by = token              → period = P, claim cleared
    release()   claimed_by = token              → claim cleared, period untouched

Two callers racing on ``claim`` both issue the same UPDATE; the database
applies them one after the other and the second no longer matches the
``WHERE`` clause.  No read-then-write window exists.

Claims expire (``ttl_seconds``) so a process that died mid-dispatch does
not block the period forever.

Example:
    >>> markers = SendMarkerStore(conn, instance_id="web-1")
    >>> token = markers.claim("2024-03", ttl_seconds=900)
    >>> if token:
    ...     try:
    ...         send_report()
    ...         markers.confirm("2024-03", token)
    ...     except Exception:
    ...         markers.release(token)
    ...         raise
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import uuid4

from gst_audit.core.dialect import Dialect, SQLiteDialect
from gst_audit.core.logging import get_logger
from gst_audit.core.protocols import Connection

logger = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _ts(moment: datetime) -> str:
    return moment.isoformat(timespec="microseconds")


@dataclass(frozen=True)
class MarkerState:
    """Snapshot of the marker row."""

    period: str | None = None
    sent_at: str | None = None
    claim_period: str | None = None
    claimed_by: str | None = None
    claim_expires_at: str | None = None

    def claim_is_live(self, now: datetime | None = None) -> bool:
        if not self.claimed_by or not self.claim_expires_at:
            return False
        return self.claim_expires_at > _ts(now or _utc_now())

    def to_dict(self) -> dict[str, str | None]:
        return {
            "period": self.period,
            "sent_at": self.sent_at,
            "claim_period": self.claim_period,
            "claimed_by": self.claimed_by,
            "claim_expires_at": self.claim_expires_at,
        }


class SendMarkerStore:
    """Compare-and-swap access to the send marker."""

    def __init__(
        self,
        conn: Connection,
        dialect: Dialect | None = None,
        instance_id: str | None = None,
    ) -> None:
        self.conn = conn
        self.dialect = dialect or SQLiteDialect()
        self.instance_id = instance_id or uuid4().hex[:12]
        self._ensure_row()

    def _ph(self, index: int) -> str:
        """Dialect placeholder at 1-based position."""
        return self.dialect.placeholder(index - 1)

    def _ensure_row(self) -> None:
        with self.conn.transaction() as conn:
            conn.execute(self.dialect.insert_or_ignore("gst_send_marker", ["id"]), (1,))

    # === Reads ===

    def state(self) -> MarkerState:
        row = self.conn.execute(
            "SELECT period, sent_at, claim_period, claimed_by, claim_expires_at FROM gst_send_marker WHERE id = 1"
        ).fetchone()
        if row is None:
            return MarkerState()
        return MarkerState(*tuple(row))

    def sent_period(self) -> str | None:
        """Period of the last successful dispatch, if any."""
        return self.state().period

    # === Transitions ===

    def claim(self, period: str, ttl_seconds: int = 900) -> str | None:
        """Claim *period* for dispatch.

        Returns:
            A claim token when this caller won, ``None`` when the period is
            already sent or another caller holds a live claim.
        """
        now = _utc_now()
        token = f"{self.instance_id}:{uuid4().hex[:8]}"
        with self.conn.transaction() as conn:
            cursor = conn.execute(
                f"""
                UPDATE gst_send_marker
                SET claim_period = {self._ph(1)}, claimed_by = {self._ph(2)},
                    claimed_at = {self._ph(3)}, claim_expires_at = {self._ph(4)}
                WHERE id = 1
                  AND (period IS NULL OR period <> {self._ph(5)})
                  AND (claimed_by IS NULL OR claim_expires_at < {self._ph(6)})
                """,
                (
                    period,
                    token,
                    _ts(now),
                    _ts(now + timedelta(seconds=ttl_seconds)),
                    period,
                    _ts(now),
                ),
            )

        if cursor.rowcount == 1:
            logger.debug("marker.claimed", period=period, token=token)
            return token
        return None

    def confirm(self, period: str, token: str) -> bool:
        """Record *period* as sent and drop the claim held by *token*.

        If the claim expired and was taken over, the period is still
        recorded (the report did go out) unless it already is.  Both
        statements run in one transaction.
        """
        now = _ts(_utc_now())
        with self.conn.transaction() as conn:
            cursor = conn.execute(
                f"""
                UPDATE gst_send_marker
                SET period = {self._ph(1)}, sent_at = {self._ph(2)},
                    claim_period = NULL, claimed_by = NULL,
                    claimed_at = NULL, claim_expires_at = NULL
                WHERE id = 1 AND claimed_by = {self._ph(3)}
                """,
                (period, now, token),
            )
            if cursor.rowcount == 1:
                return True

            logger.warning("marker.claim_lost", period=period, token=token)
            cursor = conn.execute(
                f"""
                UPDATE gst_send_marker
                SET period = {self._ph(1)}, sent_at = {self._ph(2)}
                WHERE id = 1 AND (period IS NULL OR period <> {self._ph(3)})
                """,
                (period, now, period),
            )
            return cursor.rowcount == 1

    def release(self, token: str) -> bool:
        """Drop the claim held by *token* without marking anything sent."""
        with self.conn.transaction() as conn:
            cursor = conn.execute(
                f"""
                UPDATE gst_send_marker
                SET claim_period = NULL, claimed_by = NULL,
                    claimed_at = NULL, claim_expires_at = NULL
                WHERE id = 1 AND claimed_by = {self._ph(1)}
                """,
                (token,),
            )
        return cursor.rowcount == 1

    def reset(self) -> None:
        """Forget the last sent period so the current one can be sent again."""
        with self.conn.transaction() as conn:
            conn.execute(
                """
                UPDATE gst_send_marker
                SET period = NULL, sent_at = NULL, claim_period = NULL,
                    claimed_by = NULL, claimed_at = NULL, claim_expires_at = NULL
                WHERE id = 1
                """
            )
        logger.info("marker.reset")


__all__ = ["MarkerState", "SendMarkerStore"]
