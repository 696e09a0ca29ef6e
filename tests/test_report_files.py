from datetime import date, datetime

from app.services.report_files import DateRange, content_disposition, export_filename


NOW = datetime(2024, 3, 9, 14, 5, 7)


def test_date_range_labels():
    assert DateRange().label == "All time - Present"
    assert DateRange(date(2024, 3, 1), None).label == "Mar 01, 2024 - Present"
    assert DateRange(None, date(2024, 3, 31)).label == "All time - Mar 31, 2024"
    assert DateRange(date(2024, 1, 5), date(2024, 2, 7)).label == "Jan 05, 2024 - Feb 07, 2024"


def test_export_filenames():
    assert export_filename("Report", "xlsx", NOW) == "Report_20240309_140507.xlsx"
    assert export_filename("Report", "pdf", NOW, "AllClients") == "AllClients_Report_20240309_140507.pdf"
    assert export_filename("Tasks", "xlsx", NOW, "Tech Solutions Inc.") == "Tech_Solutions_Inc._Tasks_20240309_140507.xlsx"


def test_content_disposition_keeps_ascii_fallback():
    header = content_disposition("Café_Report_20240309_140507.pdf")["Content-Disposition"]
    assert header.startswith('attachment; filename="Caf_Report_20240309_140507.pdf"')
    assert "filename*=UTF-8''Caf%C3%A9_Report_20240309_140507.pdf" in header
