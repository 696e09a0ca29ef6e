from __future__ import annotations

import re
from datetime import datetime
from io import BytesIO
from typing import Any, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from app.schemas.report_schema import ClientDetailReport, ClientReport
from app.services.report_files import DateRange


MONEY_FORMAT = "$#,##0.00"
HOURS_FORMAT = "#,##0.00"

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="667EEA", end_color="667EEA", fill_type="solid")
TOTAL_FONT = Font(bold=True, color="FFFFFF")
TOTAL_FILL = PatternFill(start_color="764BA2", end_color="764BA2", fill_type="solid")
ZEBRA_FILL = PatternFill(start_color="F8F9FA", end_color="F8F9FA", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style="thin"), right=Side(style="thin"),
    top=Side(style="thin"), bottom=Side(style="thin"),
)
CENTER = Alignment(horizontal="center")

CLIENT_SUMMARY_HEADERS = ["Client Name", "Email", "Phone", "Hourly Rate", "Total Hours", "Task Count", "Total Income"]
CLIENT_DETAIL_HEADERS = ["Task Date", "Description", "Task Link", "Hours Worked", "Amount"]

_INVALID_TITLE_CHARS = re.compile(r"[\\/*?:\[\]]")


def _sheet_title(title: str) -> str:
    # Excel: max 31 chars, no []:*?/\
    return _INVALID_TITLE_CHARS.sub("_", title)[:31] or "Report"


def _merge_title(ws: Worksheet, row: int, ncols: int, value: str, font: Font | None = None) -> None:
    ws.cell(row=row, column=1, value=value)
    ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=ncols)
    cell = ws.cell(row=row, column=1)
    if font is not None:
        cell.font = font
    cell.alignment = CENTER


def _write_header(ws: Worksheet, row: int, headers: Sequence[str]) -> None:
    for col, title in enumerate(headers, 1):
        cell = ws.cell(row=row, column=col, value=title)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.border = THIN_BORDER
        cell.alignment = CENTER


def _write_data_row(ws: Worksheet, row: int, values: Sequence[Any], formats: dict[int, str]) -> None:
    for col, value in enumerate(values, 1):
        cell = ws.cell(row=row, column=col, value=value)
        if col in formats:
            cell.number_format = formats[col]
        cell.border = THIN_BORDER
        if row % 2 == 0:
            cell.fill = ZEBRA_FILL


def _write_totals_row(ws: Worksheet, row: int, ncols: int, label_span: int, values: dict[int, Any], formats: dict[int, str]) -> None:
    ws.cell(row=row, column=1, value="TOTAL")
    for col, value in values.items():
        ws.cell(row=row, column=col, value=value)
    ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=label_span)
    for col in range(1, ncols + 1):
        cell = ws.cell(row=row, column=col)
        cell.font = TOTAL_FONT
        cell.fill = TOTAL_FILL
        cell.border = THIN_BORDER
        if col in formats:
            cell.number_format = formats[col]


def _display_width(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, float):
        return len(f"{value:,.2f}") + 1
    return len(str(value))


def _auto_width(ws: Worksheet, header_row: int, ncols: int, max_width: int = 80) -> None:
    """Size columns to the header and body; the merged banner rows are skipped."""
    for col in range(1, ncols + 1):
        widest = 0
        for (cell,) in ws.iter_rows(min_row=header_row, max_row=ws.max_row, min_col=col, max_col=col):
            widest = max(widest, _display_width(cell.value))
        ws.column_dimensions[get_column_letter(col)].width = min(max(widest + 2, 10), max_width)


def _to_bytes(wb: Workbook, generated_at: datetime) -> bytes:
    wb.properties.creator = "Client Billing Backend"
    wb.properties.created = generated_at
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


def render_clients_xlsx(report: ClientReport, date_range: DateRange, generated_at: datetime) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Client Report"
    ncols = len(CLIENT_SUMMARY_HEADERS)

    _merge_title(ws, 1, ncols, "Client Report", Font(bold=True, size=16))
    _merge_title(ws, 2, ncols, f"Period: {date_range.label}")
    header_row = 4
    _write_header(ws, header_row, CLIENT_SUMMARY_HEADERS)

    formats = {4: MONEY_FORMAT, 5: HOURS_FORMAT, 7: MONEY_FORMAT}
    row = header_row + 1
    for r in report.rows:
        _write_data_row(ws, row, [
            r.client_name,
            r.email or "",
            r.phone or "",
            r.hourly_rate,
            r.total_hours,
            r.task_count,
            r.total_income,
        ], formats)
        row += 1

    _write_totals_row(ws, row, ncols, label_span=4, values={
        5: round(sum(r.total_hours for r in report.rows), 2),
        6: sum(r.task_count for r in report.rows),
        7: round(sum(r.total_income for r in report.rows), 2),
    }, formats=formats)

    _auto_width(ws, header_row, ncols)
    return _to_bytes(wb, generated_at)


def render_client_detail_xlsx(detail: ClientDetailReport, date_range: DateRange, generated_at: datetime) -> bytes:
    client = detail.client
    wb = Workbook()
    ws = wb.active
    ws.title = _sheet_title(f"{client.name} - Tasks")
    ncols = len(CLIENT_DETAIL_HEADERS)

    _merge_title(ws, 1, ncols, client.name, Font(bold=True, size=18))
    ws.cell(row=1, column=1).alignment = Alignment(horizontal="left")
    contact = f"Email: {client.email or 'N/A'} | Phone: {client.phone or 'N/A'} | Rate: ${client.hourly_rate:,.2f}/hr"
    _merge_title(ws, 2, ncols, contact)
    ws.cell(row=2, column=1).alignment = Alignment(horizontal="left")
    _merge_title(ws, 3, ncols, f"Period: {date_range.label}")
    ws.cell(row=3, column=1).alignment = Alignment(horizontal="left")

    header_row = 5
    _write_header(ws, header_row, CLIENT_DETAIL_HEADERS)

    formats = {4: HOURS_FORMAT, 5: MONEY_FORMAT}
    row = header_row + 1
    for task in detail.tasks:
        _write_data_row(ws, row, [
            task.task_date.strftime("%b %d, %Y"),
            task.description,
            task.task_link or "",
            task.hours_worked,
            round(task.hours_worked * client.hourly_rate, 2),
        ], formats)
        row += 1

    _write_totals_row(ws, row, ncols, label_span=3, values={
        4: detail.total_hours,
        5: detail.total_income,
    }, formats=formats)

    _auto_width(ws, header_row, ncols)
    return _to_bytes(wb, generated_at)
