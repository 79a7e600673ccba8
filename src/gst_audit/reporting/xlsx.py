"""
Spreadsheet writer (openpyxl).

Layout:
    - rows 1-2: header rows, bold, fill ``D9E1F2``, centered, height 24
    - data rows: height 20
    - thin ``B4B4B4`` border on every written cell
    - every cell written as a string (HSN codes and pincodes keep leading
      zeros, amounts keep two decimals)
    - column widths sized to the longest value
"""

from __future__ import annotations

import io
from collections.abc import Sequence
from datetime import datetime
from typing import Protocol

from openpyxl import Workbook
from openpyxl.cell.cell import TYPE_STRING
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

HEADER_FILL = "D9E1F2"
BORDER_COLOR = "B4B4B4"
HEADER_ROW_HEIGHT = 24
DATA_ROW_HEIGHT = 20
SHEET_TITLE = "GST Audit"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class ReportWriter(Protocol):
    """Turns header and data rows into a binary artifact."""

    media_type: str
    extension: str

    def write(
        self,
        header_rows: Sequence[Sequence[str]],
        data_rows: Sequence[Sequence[str]],
        generated_at: datetime,
    ) -> bytes: ...


class XlsxReportWriter:
    """Write the report as a single-sheet ``.xlsx`` workbook."""

    media_type = XLSX_MEDIA_TYPE
    extension = ".xlsx"

    def __init__(self, *, sheet_title: str = SHEET_TITLE, min_width: int = 6, max_width: int = 60):
        self._sheet_title = sheet_title
        self._min_width = min_width
        self._max_width = max_width

    def write(
        self,
        header_rows: Sequence[Sequence[str]],
        data_rows: Sequence[Sequence[str]],
        generated_at: datetime,
    ) -> bytes:
        wb = Workbook()
        ws = wb.active
        ws.title = self._sheet_title
        wb.properties.created = generated_at.replace(tzinfo=None)
        wb.properties.title = self._sheet_title

        side = Side(style="thin", color=BORDER_COLOR)
        border = Border(left=side, right=side, top=side, bottom=side)
        header_font = Font(bold=True)
        header_fill = PatternFill(fill_type="solid", start_color=HEADER_FILL, end_color=HEADER_FILL)
        header_align = Alignment(horizontal="center", vertical="center")

        widths: dict[int, int] = {}
        all_rows = [*header_rows, *data_rows]
        header_count = len(header_rows)

        for row_idx, row in enumerate(all_rows, start=1):
            is_header = row_idx <= header_count
            for col_idx, value in enumerate(row, start=1):
                text = "" if value is None else str(value)
                cell = ws.cell(row=row_idx, column=col_idx)
                cell.value = text
                # "=..." would otherwise be stored as a formula
                cell.data_type = TYPE_STRING
                cell.border = border
                if is_header:
                    cell.font = header_font
                    cell.fill = header_fill
                    cell.alignment = header_align
                widths[col_idx] = max(widths.get(col_idx, 0), len(text))
            ws.row_dimensions[row_idx].height = HEADER_ROW_HEIGHT if is_header else DATA_ROW_HEIGHT

        for col_idx, width in widths.items():
            ws.column_dimensions[get_column_letter(col_idx)].width = min(
                self._max_width, max(self._min_width, width + 2)
            )

        buffer = io.BytesIO()
        wb.save(buffer)
        return buffer.getvalue()


__all__ = ["ReportWriter", "XlsxReportWriter", "XLSX_MEDIA_TYPE"]
