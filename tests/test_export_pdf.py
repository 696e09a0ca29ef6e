import re
from datetime import date, datetime, timedelta

from app.schemas.client_schema import ClientOut
from app.schemas.task_schema import TaskOut
from app.services.billing import client_detail, summarize_by_client
from app.services.export_pdf import render_client_detail_pdf, render_clients_pdf
from app.services.report_files import DateRange


GENERATED = datetime(2024, 3, 9, 14, 5)
CREATED = datetime(2024, 1, 1, 9, 0)

ACME = ClientOut(id=1, name="Acme & Sons <Ltd>", hourly_rate=50, email="ops@acme.test", created_at=CREATED)


def _tasks(client, count):
    start = date(2024, 1, 1)
    return [
        TaskOut(
            id=i + 1,
            client_id=client.id,
            task_date=start + timedelta(days=i % 60),
            description=f"Task number {i} with a reasonably long description to wrap",
            task_link="https://example.test/tasks/%d" % i,
            hours_worked=1.5,
            created_at=CREATED,
            client=client,
        )
        for i in range(count)
    ]


def _page_count(pdf: bytes) -> int:
    return len(re.findall(rb"/Type /Page[^s]", pdf))


def test_clients_pdf_is_a_document():
    report = summarize_by_client(_tasks(ACME, 3))
    pdf = render_clients_pdf(report, DateRange(date(2024, 1, 1), date(2024, 1, 31)), GENERATED)

    assert pdf.startswith(b"%PDF")
    assert _page_count(pdf) == 1


def test_clients_pdf_without_rows():
    pdf = render_clients_pdf(summarize_by_client([]), DateRange(), GENERATED)
    assert pdf.startswith(b"%PDF")


def test_detail_pdf_paginates():
    detail = client_detail(ACME, _tasks(ACME, 120))
    pdf = render_client_detail_pdf(detail, DateRange(), GENERATED)

    assert pdf.startswith(b"%PDF")
    assert _page_count(pdf) > 1


def test_detail_pdf_without_tasks():
    bare = ClientOut(id=2, name="Initech", hourly_rate=40, created_at=CREATED)
    pdf = render_client_detail_pdf(client_detail(bare, []), DateRange(), GENERATED)
    assert pdf.startswith(b"%PDF")
    assert _page_count(pdf) == 1


def test_pdf_output_is_stable_for_same_input():
    detail = client_detail(ACME, _tasks(ACME, 5))
    first = render_client_detail_pdf(detail, DateRange(), GENERATED)
    second = render_client_detail_pdf(detail, DateRange(), GENERATED)
    assert first == second
