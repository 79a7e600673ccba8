"""
Report delivery.

:class:`ReportDispatcher` writes the table to a temporary artifact, mails
it to every recipient once and removes the artifact afterwards, whatever
happened in between.

A single failed recipient fails the whole dispatch.  The caller (the
trigger arbiter) then leaves the period unsent and the next trigger resends
to everyone, including recipients that already got it.
"""

from __future__ import annotations

import html
import tempfile
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from gst_audit.core.errors import DispatchError
from gst_audit.core.logging import get_logger
from gst_audit.reporting.mailer import Attachment, Mailer
from gst_audit.reporting.models import ReportTable
from gst_audit.reporting.xlsx import ReportWriter

logger = get_logger(__name__)


@dataclass
class DispatchOutcome:
    """Per-recipient result of one dispatch."""

    period: str
    success: bool
    delivered: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    rows: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "period": self.period,
            "success": self.success,
            "delivered": self.delivered,
            "failed": self.failed,
            "errors": self.errors,
            "rows": self.rows,
        }


class ReportDispatcher:
    """Render a report table and mail it to a list of recipients."""

    def __init__(
        self,
        writer: ReportWriter,
        mailer: Mailer,
        *,
        store_name: str = "Store",
        clock: Callable[[], datetime] = datetime.now,
        temp_dir: str | None = None,
    ):
        self._writer = writer
        self._mailer = mailer
        self._store_name = store_name
        self._clock = clock
        self._temp_dir = temp_dir

    @property
    def writer(self) -> ReportWriter:
        return self._writer

    def render(self, table: ReportTable, generated_at: datetime | None = None) -> bytes:
        """Artifact bytes for *table*."""
        header_rows = table.header_rows()
        try:
            return self._writer.write(header_rows, table.data_rows(), generated_at or self._clock())
        except Exception as e:
            raise DispatchError(f"Could not write report for {table.period}", cause=e).with_context(
                period=str(table.period)
            ) from e

    def subject(self, table: ReportTable) -> str:
        return f"{self._store_name} GST Audit Report - {table.period.label}"

    def body(self, table: ReportTable, generated_at: datetime) -> str:
        return (
            f"<p>Please find attached the GST audit report for "
            f"<strong>{html.escape(table.period.label)}</strong>.</p>"
            f"<ul>"
            f"<li>Store: {html.escape(self._store_name)}</li>"
            f"<li>Orders: {table.order_count}</li>"
            f"<li>Rows: {len(table.rows)}</li>"
            f"<li>Generated: {generated_at.strftime('%Y-%m-%d %H:%M:%S')}</li>"
            f"</ul>"
        )

    def send(self, table: ReportTable, recipients: Sequence[str]) -> DispatchOutcome:
        """Mail *table* to each recipient once.

        Raises:
            DispatchError: the artifact could not be written
        """
        period = str(table.period)
        outcome = DispatchOutcome(period=period, success=False, rows=len(table.rows))
        if not recipients:
            outcome.errors.append("No recipients configured")
            return outcome

        generated_at = self._clock()
        payload = self.render(table, generated_at)
        subject = self.subject(table)
        body = self.body(table, generated_at)

        handle = tempfile.NamedTemporaryFile(
            prefix=f"gst-audit-{period}-",
            suffix=self._writer.extension,
            dir=self._temp_dir,
            delete=False,
        )
        path = Path(handle.name)
        try:
            with handle:
                handle.write(payload)
            attachment = Attachment(path=path, filename=table.filename, media_type=self._writer.media_type)
            for recipient in recipients:
                try:
                    delivered = self._mailer.send(recipient, subject, body, attachment)
                except Exception as e:
                    logger.warning("dispatch.recipient_error", recipient=recipient, error=str(e))
                    outcome.failed.append(recipient)
                    outcome.errors.append(f"{recipient}: {e}")
                    continue
                if delivered:
                    outcome.delivered.append(recipient)
                else:
                    outcome.failed.append(recipient)
                    outcome.errors.append(f"{recipient}: delivery failed")
        finally:
            path.unlink(missing_ok=True)

        outcome.success = not outcome.failed
        logger.info(
            "dispatch.finished",
            period=period,
            success=outcome.success,
            delivered=len(outcome.delivered),
            failed=len(outcome.failed),
        )
        return outcome


__all__ = ["DispatchOutcome", "ReportDispatcher"]
