"""Tests for report dispatch: one artifact, every recipient, no leftovers."""

from __future__ import annotations

import io
from datetime import datetime
from decimal import Decimal

import pytest
from openpyxl import load_workbook

from gst_audit.core.errors import DispatchError
from gst_audit.core.period import Period
from gst_audit.reporting.dispatcher import ReportDispatcher
from gst_audit.reporting.models import PivotSchema, ReportRow, ReportTable, TaxRate
from gst_audit.reporting.xlsx import XlsxReportWriter

GENERATED = datetime(2024, 3, 1, 9, 0, 0)


@pytest.fixture
def table() -> ReportTable:
    schema = PivotSchema.from_tax_classes({"GST": [TaxRate(1, "CGST", "9"), TaxRate(2, "SGST", "9")]})
    row = ReportRow(
        order_date="2024-02-05",
        order_id=1,
        invoice_number="INV-1",
        status="completed",
        name="Asha Rao",
        city="Pune",
        pincode="011001",
        product_name="Tea",
        hsn_code="0902",
        price_inc_tax=Decimal("118"),
        quantity=1,
        total_inc_tax=Decimal("118"),
        total_excl_tax=Decimal("100"),
        taxes={1: Decimal("9"), 2: Decimal("9")},
    )
    return ReportTable(period=Period(2024, 2), schema=schema, rows=[row], order_count=1)


def _dispatcher(mailer, writer=None) -> ReportDispatcher:
    return ReportDispatcher(
        writer or XlsxReportWriter(),
        mailer,
        store_name="Chai & Co",
        clock=lambda: GENERATED,
    )


class BrokenWriter:
    media_type = "application/octet-stream"
    extension = ".bin"

    def write(self, header_rows, data_rows, generated_at):
        raise ValueError("disk full")


class TestReportDispatcher:
    def test_sends_once_per_recipient(self, table, mailer):
        outcome = _dispatcher(mailer).send(table, ["a@example.com", "b@example.com"])

        assert outcome.success
        assert outcome.delivered == ["a@example.com", "b@example.com"]
        assert mailer.attempted == ["a@example.com", "b@example.com"]
        assert outcome.rows == 1
        msg = mailer.sent[0]
        assert msg["subject"] == "Chai & Co GST Audit Report - February 2024"
        assert msg["filename"] == "gst-audit-export-2024-02.xlsx"
        assert "Chai &amp; Co" in msg["body"]
        assert "February 2024" in msg["body"]

    def test_attachment_is_the_rendered_table(self, table, mailer):
        _dispatcher(mailer).send(table, ["a@example.com"])
        ws = load_workbook(io.BytesIO(mailer.sent[0]["content"])).active
        assert ws["A1"].value == "Order Date"
        assert ws["G3"].value == "011001"
        assert ws["I3"].value == "0902"
        assert ws["N2"].value == "CGST (9%)"
        assert ws["N3"].value == "9.00"

    def test_partial_failure_fails_dispatch(self, table, make_mailer):
        mailer = make_mailer(fail_for={"b@example.com"})
        outcome = _dispatcher(mailer).send(table, ["a@example.com", "b@example.com", "c@example.com"])

        assert not outcome.success
        assert outcome.delivered == ["a@example.com", "c@example.com"]
        assert outcome.failed == ["b@example.com"]
        assert outcome.errors == ["b@example.com: delivery failed"]

    def test_mailer_exception_counts_as_failure(self, table, make_mailer):
        class RaisingMailer(make_mailer):
            def send(self, recipient, subject, html_body, attachment=None):
                if recipient == "boom@example.com":
                    raise RuntimeError("connection reset")
                return super().send(recipient, subject, html_body, attachment)

        mailer = RaisingMailer()
        outcome = _dispatcher(mailer).send(table, ["boom@example.com", "a@example.com"])
        assert outcome.failed == ["boom@example.com"]
        assert outcome.delivered == ["a@example.com"]
        assert "connection reset" in outcome.errors[0]

    def test_temporary_artifact_removed(self, table, make_mailer):
        mailer = make_mailer(fail_for={"a@example.com"})
        _dispatcher(mailer).send(table, ["a@example.com", "b@example.com"])
        assert len(set(mailer.attachment_paths)) == 1
        assert not mailer.attachment_paths[0].exists()

    def test_no_recipients(self, table, mailer):
        outcome = _dispatcher(mailer).send(table, [])
        assert not outcome.success
        assert outcome.errors == ["No recipients configured"]
        assert mailer.attempted == []

    def test_writer_failure_raises(self, table, mailer):
        with pytest.raises(DispatchError) as exc_info:
            _dispatcher(mailer, BrokenWriter()).send(table, ["a@example.com"])
        assert exc_info.value.to_dict()["context"]["period"] == "2024-02"
        assert mailer.attempted == []

    def test_outcome_to_dict(self, table, mailer):
        outcome = _dispatcher(mailer).send(table, ["a@example.com"])
        assert outcome.to_dict() == {
            "period": "2024-02",
            "success": True,
            "delivered": ["a@example.com"],
            "failed": [],
            "errors": [],
            "rows": 1,
        }
