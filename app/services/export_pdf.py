"""PDF rendering of billing reports with reportlab.

Both documents share one layout: a header block (title, optional contact
line, period, rule), a zebra-striped table with a coloured header row and a
totals row, and a footer reading "Generated on ... | Page X of Y".
"""
from __future__ import annotations

from datetime import datetime
from functools import partial
from io import BytesIO
from typing import Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from reportlab.platypus.flowables import HRFlowable

from app.schemas.report_schema import ClientDetailReport, ClientReport
from app.services.report_files import DateRange


_C_TITLE = colors.HexColor("#283593")
_C_HEADER = colors.HexColor("#3F51B5")
_C_TOTAL = colors.HexColor("#303F9F")
_C_SUBTLE = colors.HexColor("#757575")
_C_RULE = colors.HexColor("#E0E0E0")
_C_ROW_ALT = colors.HexColor("#F5F5F5")

_MARGIN = 30
_FONT_SIZE = 10
_FOOTER_SIZE = 9


class _FooterCanvas(canvas.Canvas):
    """Holds pages back until save() so each footer knows the page total."""

    def __init__(self, *args, generated_label: str = "", **kwargs):
        super().__init__(*args, **kwargs)
        self._generated_label = generated_label
        self._saved_page_states: list[dict] = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(total)
            super().showPage()
        super().save()

    def _draw_footer(self, total_pages: int) -> None:
        parts = [
            ("Generated on ", "Helvetica"),
            (self._generated_label, "Helvetica-Bold"),
            (f" | Page {self._pageNumber} of {total_pages}", "Helvetica"),
        ]
        widths = [self.stringWidth(text, font, _FOOTER_SIZE) for text, font in parts]
        x = (self._pagesize[0] - sum(widths)) / 2
        y = _MARGIN / 2
        self.saveState()
        self.setFillColor(colors.black)
        for (text, font), width in zip(parts, widths):
            self.setFont(font, _FOOTER_SIZE)
            self.drawString(x, y, text)
            x += width
        self.restoreState()


def _styles():
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle("ReportTitle", parent=base["Normal"], fontName="Helvetica-Bold",
                                fontSize=24, leading=28, textColor=_C_TITLE),
        "contact": ParagraphStyle("ReportContact", parent=base["Normal"], fontSize=_FONT_SIZE,
                                  leading=13, spaceBefore=5),
        "period": ParagraphStyle("ReportPeriod", parent=base["Normal"], fontSize=12, leading=15,
                                 textColor=_C_SUBTLE, spaceBefore=4),
        "cell": ParagraphStyle("ReportCell", parent=base["Normal"], fontSize=_FONT_SIZE, leading=12),
    }


def _money(value: float) -> str:
    return f"${value:,.2f}"


def _number(value: float) -> str:
    return f"{value:,.2f}"


def _header_block(styles, title: str, period: str, contact: str | None = None) -> list:
    story = [Paragraph(escape(title), styles["title"])]
    if contact:
        story.append(Paragraph(contact, styles["contact"]))
    story.append(Paragraph(escape(period), styles["period"]))
    story.append(Spacer(1, 10))
    story.append(HRFlowable(width="100%", thickness=1, color=_C_RULE, spaceAfter=20))
    return story


def _report_table(
    data: list[list],
    col_weights: Sequence[float],
    usable_width: float,
    right_cols: Sequence[int],
    label_span: int,
    bold_cols: Sequence[int] = (),
) -> Table:
    """`data` is header row, body rows, totals row."""
    total_weight = sum(col_weights)
    col_widths = [usable_width * w / total_weight for w in col_weights]
    last = len(data) - 1
    commands = [
        ("BACKGROUND", (0, 0), (-1, 0), _C_HEADER),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), _FONT_SIZE),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("TOPPADDING", (0, 0), (-1, -1), 6),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
        ("LEFTPADDING", (0, 0), (-1, -1), 6),
        ("RIGHTPADDING", (0, 0), (-1, -1), 6),
        ("TOPPADDING", (0, 0), (-1, 0), 8),
        ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
        # Totals row
        ("SPAN", (0, last), (label_span - 1, last)),
        ("BACKGROUND", (0, last), (-1, last), _C_TOTAL),
        ("TEXTCOLOR", (0, last), (-1, last), colors.white),
        ("FONTNAME", (0, last), (-1, last), "Helvetica-Bold"),
        ("TOPPADDING", (0, last), (-1, last), 8),
        ("BOTTOMPADDING", (0, last), (-1, last), 8),
    ]
    for col in right_cols:
        commands.append(("ALIGN", (col, 0), (col, -1), "RIGHT"))
    if last > 1:
        commands.append(("ROWBACKGROUNDS", (0, 1), (-1, last - 1), [colors.white, _C_ROW_ALT]))
        for col in bold_cols:
            commands.append(("FONTNAME", (col, 1), (col, last - 1), "Helvetica-Bold"))
    table = Table(data, colWidths=col_widths, repeatRows=1)
    table.setStyle(TableStyle(commands))
    return table


def _build(story: list, pagesize, generated_at: datetime) -> bytes:
    buf = BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=pagesize,
        leftMargin=_MARGIN,
        rightMargin=_MARGIN,
        topMargin=_MARGIN,
        bottomMargin=_MARGIN + 10,
        invariant=1,
    )
    label = generated_at.strftime("%B %d, %Y %H:%M")
    doc.build(story, canvasmaker=partial(_FooterCanvas, generated_label=label))
    return buf.getvalue()


def render_clients_pdf(report: ClientReport, date_range: DateRange, generated_at: datetime) -> bytes:
    styles = _styles()
    cell = styles["cell"]
    pagesize = landscape(A4)

    data: list[list] = [["Client Name", "Email", "Phone", "Rate", "Hours", "Tasks", "Total Income"]]
    for r in report.rows:
        data.append([
            Paragraph(escape(r.client_name), cell),
            Paragraph(escape(r.email or "-"), cell),
            Paragraph(escape(r.phone or "-"), cell),
            _money(r.hourly_rate),
            _number(r.total_hours),
            str(r.task_count),
            _money(r.total_income),
        ])
    data.append([
        "TOTAL", "", "", "",
        _number(sum(r.total_hours for r in report.rows)),
        str(sum(r.task_count for r in report.rows)),
        _money(sum(r.total_income for r in report.rows)),
    ])

    story = _header_block(styles, "Client Report", date_range.label)
    story.append(_report_table(
        data,
        col_weights=[3, 3, 2, 1.5, 1.5, 1, 2],
        usable_width=pagesize[0] - 2 * _MARGIN,
        right_cols=[3, 4, 5, 6],
        label_span=4,
        bold_cols=[6],
    ))
    return _build(story, pagesize, generated_at)


def render_client_detail_pdf(detail: ClientDetailReport, date_range: DateRange, generated_at: datetime) -> bytes:
    client = detail.client
    styles = _styles()
    cell = styles["cell"]
    pagesize = A4

    contact_parts = []
    if client.email:
        contact_parts.append(f"Email: {escape(client.email)}")
    if client.phone:
        contact_parts.append(f"Phone: {escape(client.phone)}")
    contact_parts.append(f"<b>Rate: {_money(client.hourly_rate)}/hr</b>")

    data: list[list] = [["Date", "Description", "Link", "Hours", "Amount"]]
    for task in detail.tasks:
        data.append([
            task.task_date.strftime("%b %d, %Y"),
            Paragraph(escape(task.description), cell),
            Paragraph(escape(task.task_link or "-"), cell),
            _number(task.hours_worked),
            _money(task.hours_worked * client.hourly_rate),
        ])
    data.append(["TOTAL", "", "", _number(detail.total_hours), _money(detail.total_income)])

    story = _header_block(styles, client.name, date_range.label, contact="&nbsp;&nbsp;".join(contact_parts))
    story.append(_report_table(
        data,
        col_weights=[2, 5, 3, 1.5, 2],
        usable_width=pagesize[0] - 2 * _MARGIN,
        right_cols=[3, 4],
        label_span=3,
    ))
    return _build(story, pagesize, generated_at)
