"""Tests for report operations."""

from __future__ import annotations

import pytest

from gst_audit.ops.reports import export_report, preview_report, send_now, send_test
from gst_audit.reporting.xlsx import XLSX_MEDIA_TYPE


@pytest.fixture
def february(seed):
    seed.gst_schema()
    seed.product(10, "Tea", "0902")
    seed.order(
        1,
        "2024-02-05 10:00:00",
        items=[{"item_id": 11, "name": "Tea", "product_id": 10, "quantity": 2, "total": "200",
                "taxes": {1: "9", 2: "9"}}],
        shipping=[{"item_id": 12, "total": "50", "taxes": {1: "4.50"}}],
    )
    seed.order(2, "2024-02-20 18:30:00", items=[{"item_id": 21, "product_id": 10, "total": "100"}])


class TestPreviewReport:
    def test_defaults_to_previous_month(self, ctx, february):
        result = preview_report(ctx)
        assert result.success
        assert result.data["period"] == "2024-02"
        assert result.data["total_orders"] == 2
        assert len(result.data["rows"]) == 3
        assert result.data["header_rows"][1][13:] == ["-", "CGST (9%)", "SGST (9%)", "-"]

    def test_explicit_period(self, ctx, february):
        result = preview_report(ctx, period="2024-01")
        assert result.success
        assert result.data["rows"] == []
        assert result.data["pages"] == 1

    def test_bad_period(self, ctx):
        result = preview_report(ctx, period="2024-13")
        assert not result.success
        assert result.error.code == "VALIDATION_FAILED"


class TestExportReport:
    def test_renders_spreadsheet(self, ctx, february):
        result = export_report(ctx, "2024-02")
        assert result.success
        export = result.data
        assert export.filename == "gst-audit-export-2024-02.xlsx"
        assert export.media_type == XLSX_MEDIA_TYPE
        assert export.content[:2] == b"PK"
        assert (export.rows, export.orders) == (3, 2)

    def test_empty_month_still_exports(self, ctx):
        result = export_report(ctx, "2023-12")
        assert result.success
        assert result.data.rows == 0


class TestSendNow:
    def test_explicit_recipients_bypass_marker(self, ctx, services, mailer, february):
        result = send_now(ctx, period="2024-02", recipients="ops@example.com, not-an-email")
        assert result.success
        assert result.data["delivered"] == ["ops@example.com"]
        assert len(mailer.sent) == 1
        assert services.markers.sent_period() is None

    def test_configured_recipients_by_default(self, ctx, schedule_active, mailer):
        result = send_now(ctx)
        assert result.success
        assert mailer.attempted == ["audit@example.com"]
        assert mailer.sent[0]["subject"] == "Test Store GST Audit Report - February 2024"

    def test_resend_after_scheduled_send(self, ctx, schedule_active, mailer):
        schedule_active.trigger.fire("test")
        assert schedule_active.markers.sent_period() == "2024-03"
        assert send_now(ctx).success
        assert len(mailer.sent) == 2
        assert schedule_active.markers.sent_period() == "2024-03"

    def test_no_recipients(self, ctx, mailer):
        result = send_now(ctx)
        assert not result.success
        assert result.error.code == "VALIDATION_FAILED"
        assert mailer.attempted == []

    def test_delivery_failure(self, ctx, mailer):
        mailer.fail_for = {"b@example.com"}
        result = send_now(ctx, recipients=["a@example.com", "b@example.com"])
        assert not result.success
        assert result.error.code == "TRANSIENT"
        assert result.error.retryable
        assert result.error.details["failed"] == ["b@example.com"]


class TestSendTest:
    def test_single_recipient(self, ctx, mailer):
        result = send_test(ctx, " qa@example.com ")
        assert result.success
        assert mailer.attempted == ["qa@example.com"]

    @pytest.mark.parametrize("address", ["", "qa@", "qa@@example.com", "qa@example..com"])
    def test_invalid_address(self, ctx, mailer, address):
        result = send_test(ctx, address)
        assert not result.success
        assert result.error.code == "VALIDATION_FAILED"
        assert mailer.attempted == []
