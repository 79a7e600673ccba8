"""Tests for the openpyxl report writer."""

from __future__ import annotations

import io
from datetime import datetime

import pytest
from openpyxl import load_workbook

from gst_audit.reporting.xlsx import (
    DATA_ROW_HEIGHT,
    HEADER_FILL,
    HEADER_ROW_HEIGHT,
    XLSX_MEDIA_TYPE,
    XlsxReportWriter,
)

HEADERS = [["Order ID", "HSN Code", "GST", ""], ["", "", "CGST (9%)", "SGST (9%)"]]
ROWS = [
    ["1001", "0902", "9.00", ""],
    ["1002", "=SUM(A1:A2)", "", "4.50"],
]


@pytest.fixture
def sheet():
    content = XlsxReportWriter().write(HEADERS, ROWS, datetime(2024, 3, 1, 9, 0))
    wb = load_workbook(io.BytesIO(content))
    return wb.active


class TestXlsxReportWriter:
    def test_media_type(self):
        writer = XlsxReportWriter()
        assert writer.media_type == XLSX_MEDIA_TYPE
        assert writer.extension == ".xlsx"

    def test_produces_zip_container(self):
        content = XlsxReportWriter().write(HEADERS, ROWS, datetime(2024, 3, 1))
        assert content[:2] == b"PK"

    def test_sheet_title(self, sheet):
        assert sheet.title == "GST Audit"

    def test_header_style(self, sheet):
        for row in (1, 2):
            cell = sheet.cell(row=row, column=1)
            assert cell.font.bold
            assert cell.fill.fill_type == "solid"
            assert cell.fill.start_color.rgb.endswith(HEADER_FILL)
            assert cell.alignment.horizontal == "center"
            assert sheet.row_dimensions[row].height == HEADER_ROW_HEIGHT
        assert not sheet.cell(row=3, column=1).font.bold
        assert sheet.row_dimensions[3].height == DATA_ROW_HEIGHT

    def test_cells_are_strings(self, sheet):
        assert sheet["A3"].value == "1001"
        assert sheet["B3"].value == "0902"
        assert sheet["C3"].value == "9.00"
        assert sheet["B4"].value == "=SUM(A1:A2)"
        assert sheet["B4"].data_type == "s"

    def test_borders_on_written_cells(self, sheet):
        border = sheet["C4"].border
        assert border.left.style == "thin"
        assert border.bottom.style == "thin"

    def test_widths_follow_longest_value(self, sheet):
        assert sheet.column_dimensions["B"].width == len("=SUM(A1:A2)") + 2
        assert sheet.column_dimensions["D"].width == len("SGST (9%)") + 2

    def test_width_is_capped(self):
        content = XlsxReportWriter(max_width=20).write([["Name"]], [["x" * 200]], datetime(2024, 3, 1))
        ws = load_workbook(io.BytesIO(content)).active
        assert ws.column_dimensions["A"].width == 20
