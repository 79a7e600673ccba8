"""
Shared pytest fixtures for gst-audit tests.

This module provides:
- An in-memory database with the full schema applied
- A recording mailer and a settable clock
- A ``seed`` factory for tax classes, products and orders
- A fully wired ``services`` graph built from the fakes

Usage:
    def test_something(services, seed):
        seed.order(1, "2024-02-10 10:00:00", items=[...])
        table = services.aggregator.build(Period(2024, 2))
"""

from __future__ import annotations

from collections.abc import Generator, Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest

from gst_audit.core.schema import create_core_tables
from gst_audit.core.settings import GstAuditSettings
from gst_audit.core.sqlite_conn import SqliteConnection
from gst_audit.ops.context import OperationContext, Services, build_services
from gst_audit.reporting.mailer import Attachment


# =============================================================================
# Test doubles
# =============================================================================


class RecordingMailer:
    """Mailer that records every message instead of sending it.

    Recipients listed in ``fail_for`` are reported as undelivered.
    """

    def __init__(self, fail_for: Iterable[str] = ()):
        self.fail_for = set(fail_for)
        self.sent: list[dict[str, Any]] = []
        self.attempted: list[str] = []
        self.attachment_paths: list[Path] = []

    def send(self, recipient: str, subject: str, html_body: str, attachment: Attachment | None = None) -> bool:
        self.attempted.append(recipient)
        content = b""
        if attachment is not None:
            self.attachment_paths.append(attachment.path)
            content = attachment.path.read_bytes()
        if recipient in self.fail_for:
            return False
        self.sent.append(
            {
                "recipient": recipient,
                "subject": subject,
                "body": html_body,
                "filename": attachment.filename if attachment else None,
                "content": content,
            }
        )
        return True


class SettableClock:
    """Callable clock that returns a fixed instant until moved."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now


class Seeder:
    """Insert commerce mirror rows for report tests."""

    def __init__(self, conn: SqliteConnection):
        self.conn = conn

    def tax_class(self, slug: str, name: str, sort_order: int = 0) -> None:
        self.conn.execute(
            "INSERT INTO gst_tax_classes (slug, name, sort_order) VALUES (?, ?, ?)",
            (slug, name, sort_order),
        )
        self.conn.commit()

    def rate(self, rate_id: int, class_slug: str = "", label: str = "", percent: str = "", rate_order: int = 0) -> None:
        self.conn.execute(
            "INSERT INTO gst_tax_rates (rate_id, class_slug, label, percent, rate_order) VALUES (?, ?, ?, ?, ?)",
            (rate_id, class_slug, label, percent, rate_order),
        )
        self.conn.commit()

    def product(
        self,
        product_id: int,
        name: str,
        hsn_code: str = "",
        *,
        parent_id: int | None = None,
        status: str = "publish",
        sku: str = "",
    ) -> None:
        self.conn.execute(
            "INSERT INTO gst_products (product_id, parent_id, name, sku, status, hsn_code) VALUES (?, ?, ?, ?, ?, ?)",
            (product_id, parent_id, name, sku, status, hsn_code),
        )
        self.conn.commit()

    def order(
        self,
        order_id: int,
        created_at: str,
        *,
        status: str = "completed",
        items: Iterable[dict[str, Any]] = (),
        shipping: Iterable[dict[str, Any]] = (),
        invoice: str = "",
        first_name: str = "Asha",
        last_name: str = "Rao",
        city: str = "Pune",
        postcode: str = "411001",
    ) -> None:
        """Insert an order with line items and shipping lines.

        Each item is a dict with ``item_id`` and optional ``name``,
        ``product_id``, ``variation_id``, ``quantity``, ``total`` and
        ``taxes`` (``{rate_id: amount}``).
        """
        self.conn.execute(
            """
            INSERT INTO gst_orders (order_id, created_at, status, invoice_number,
                billing_first_name, billing_last_name, billing_city, billing_postcode)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (order_id, created_at, status, invoice, first_name, last_name, city, postcode),
        )
        for item_type, lines in (("line_item", items), ("shipping", shipping)):
            for line in lines:
                self.conn.execute(
                    """
                    INSERT INTO gst_order_items (item_id, order_id, item_type, name, product_id,
                        variation_id, quantity, total)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        line["item_id"],
                        order_id,
                        item_type,
                        line.get("name", "Shipping" if item_type == "shipping" else "Item"),
                        line.get("product_id"),
                        line.get("variation_id"),
                        line.get("quantity", 1),
                        str(line.get("total", "0")),
                    ),
                )
                for rate_id, amount in line.get("taxes", {}).items():
                    self.conn.execute(
                        "INSERT INTO gst_order_item_taxes (item_id, rate_id, amount) VALUES (?, ?, ?)",
                        (line["item_id"], rate_id, str(amount)),
                    )
        self.conn.commit()

    def gst_schema(self) -> None:
        """A "GST" class with CGST 9% and SGST 9%, plus an "Exempt" class with no rates."""
        self.tax_class("gst", "GST", 1)
        self.tax_class("exempt", "Exempt", 2)
        self.rate(1, "gst", "CGST", "9.0000", 1)
        self.rate(2, "gst", "SGST", "9.0000", 2)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def conn() -> Generator[SqliteConnection, None, None]:
    """In-memory database with every table created."""
    connection = SqliteConnection(":memory:")
    create_core_tables(connection)
    yield connection
    connection.close()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path to a file database with the schema applied (for multi-connection tests)."""
    path = tmp_path / "gst_audit.db"
    connection = SqliteConnection(str(path))
    create_core_tables(connection)
    connection.close()
    return path


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def make_mailer() -> type[RecordingMailer]:
    """The recording mailer class, for tests that need failing recipients."""
    return RecordingMailer


@pytest.fixture
def clock() -> SettableClock:
    return SettableClock(datetime(2024, 3, 1, 9, 0, 0))


@pytest.fixture
def seed(conn: SqliteConnection) -> Seeder:
    return Seeder(conn)


@pytest.fixture
def settings() -> GstAuditSettings:
    return GstAuditSettings(
        timers_enabled=False,
        opportunistic_enabled=False,
        geolocation_enabled=False,
        store_name="Test Store",
        _env_file=None,
    )


@pytest.fixture
def services(
    conn: SqliteConnection,
    settings: GstAuditSettings,
    mailer: RecordingMailer,
    clock: SettableClock,
) -> Generator[Services, None, None]:
    svc = build_services(conn, settings, mailer=mailer, clock=clock, instance_id="test")
    yield svc
    svc.trigger.stop()


@pytest.fixture
def ctx(services: Services) -> OperationContext:
    return OperationContext(services=services, caller="test")


@pytest.fixture
def schedule_active(services: Services) -> Services:
    """Enable the schedule for the 1st at 09:00 with one recipient."""
    services.schedule.update(enabled=True, recipients="audit@example.com", day_of_month=1, time_of_day="09:00")
    return services
