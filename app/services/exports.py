from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Optional

from fastapi import HTTPException, Response

from app.core.feature_flags import features
from app.schemas.report_schema import ClientDetailReport, ClientReport
from app.services.export_pdf import render_client_detail_pdf, render_clients_pdf
from app.services.export_xlsx import render_client_detail_xlsx, render_clients_xlsx
from app.services.report_files import MEDIA_TYPES, DateRange, content_disposition, export_filename


logger = logging.getLogger("uvicorn.error")


class ExportFormat(str, Enum):
    xlsx = "xlsx"
    pdf = "pdf"


def ensure_export_enabled(fmt: ExportFormat) -> None:
    if fmt is ExportFormat.xlsx and not features.export_xlsx:
        raise HTTPException(status_code=404, detail="Spreadsheet export disabled")
    if fmt is ExportFormat.pdf and not features.export_pdf:
        raise HTTPException(status_code=404, detail="PDF export disabled")


def _file_response(content: bytes, fmt: ExportFormat, filename: str) -> Response:
    logger.info("Exported %s (%d bytes)", filename, len(content))
    return Response(
        content=content,
        media_type=MEDIA_TYPES[fmt.value],
        headers=content_disposition(filename),
    )


def summary_export(
    fmt: ExportFormat,
    report: ClientReport,
    date_range: DateRange,
    now: datetime,
    entity: Optional[str] = None,
) -> Response:
    if fmt is ExportFormat.xlsx:
        content = render_clients_xlsx(report, date_range, now)
    else:
        content = render_clients_pdf(report, date_range, now)
    return _file_response(content, fmt, export_filename("Report", fmt.value, now, entity))


def detail_export(
    fmt: ExportFormat,
    detail: ClientDetailReport,
    date_range: DateRange,
    now: datetime,
    kind: str = "Report",
) -> Response:
    """`kind` is "Tasks" from the client pages and "Report" from the reports pages."""
    if fmt is ExportFormat.xlsx:
        content = render_client_detail_xlsx(detail, date_range, now)
    else:
        content = render_client_detail_pdf(detail, date_range, now)
    return _file_response(content, fmt, export_filename(kind, fmt.value, now, detail.client.name))
