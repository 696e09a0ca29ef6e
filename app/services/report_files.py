from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional
from urllib.parse import quote


XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MEDIA_TYPE = "application/pdf"

MEDIA_TYPES = {
    "xlsx": XLSX_MEDIA_TYPE,
    "pdf": PDF_MEDIA_TYPE,
}


@dataclass(frozen=True)
class DateRange:
    start: Optional[date] = None
    end: Optional[date] = None

    @staticmethod
    def _fmt(d: date) -> str:
        return d.strftime("%b %d, %Y")

    @property
    def label(self) -> str:
        start = self._fmt(self.start) if self.start else "All time"
        end = self._fmt(self.end) if self.end else "Present"
        return f"{start} - {end}"


def export_filename(kind: str, extension: str, now: datetime, entity: Optional[str] = None) -> str:
    """`{Entity}_{Kind}_{yyyyMMdd_HHmmss}.{ext}`; spaces in the entity become underscores."""
    stamp = now.strftime("%Y%m%d_%H%M%S")
    if entity:
        return f"{entity.replace(' ', '_')}_{kind}_{stamp}.{extension}"
    return f"{kind}_{stamp}.{extension}"


def content_disposition(filename: str) -> dict[str, str]:
    # Headers are latin-1; keep an ASCII fallback next to the RFC 5987 form
    fallback = filename.encode("ascii", "ignore").decode().replace('"', "") or "report"
    return {
        "Content-Disposition": f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"
    }
