import os


def _as_bool(val: str | None, default: bool = True) -> bool:
    if val is None:
        return default
    v = val.strip().lower()
    return v in {"1", "true", "yes", "on"}


class ReportFeatures:
    export_xlsx: bool
    export_pdf: bool
    monthly_breakdown: bool

    def __init__(self) -> None:
        self.export_xlsx = _as_bool(os.getenv("FEATURE_EXPORT_XLSX"), True)
        self.export_pdf = _as_bool(os.getenv("FEATURE_EXPORT_PDF"), True)
        self.monthly_breakdown = _as_bool(os.getenv("FEATURE_MONTHLY_BREAKDOWN"), True)


features = ReportFeatures()
