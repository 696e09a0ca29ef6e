from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient
from pymongo.errors import ServerSelectionTimeoutError

from app.core.clock import get_clock
from app.db.mongo import get_mongo_db
from app.db.store import BillingStore, get_store
from main import app


NOW = datetime(2024, 3, 20, 16, 45, 0)


client = TestClient(app)


@pytest.fixture(autouse=True)
def isolated_db():
    db = AsyncMongoMockClient()["billing_api_test"]
    app.dependency_overrides[get_mongo_db] = lambda: db
    app.dependency_overrides[get_clock] = lambda: (lambda: NOW)
    yield db
    app.dependency_overrides.clear()


def _create_client(name="Tech Solutions Inc.", rate=75.0, **kw):
    response = client.post("/api/v1/clients", json={"name": name, "hourly_rate": rate, **kw})
    assert response.status_code == 201, response.text
    return response.json()


def _create_task(client_id, task_date="2024-03-05", hours=2.0, **kw):
    payload = {"client_id": client_id, "task_date": task_date, "description": "Feature work", "hours_worked": hours, **kw}
    response = client.post("/api/v1/tasks", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_root_and_health():
    assert client.get("/").json() == {"message": "Welcome to Client Billing Backend"}
    assert client.get("/health").json() == {"status": "ok"}


def test_client_crud_round_trip():
    created = _create_client(email="contact@techsolutions.com")
    assert created["id"] == 1
    assert created["currency"] == "INR"

    listed = client.get("/api/v1/clients").json()
    assert [(c["name"], c["task_count"]) for c in listed] == [("Tech Solutions Inc.", 0)]

    response = client.put(f"/api/v1/clients/{created['id']}", json={"name": "Tech Solutions", "hourly_rate": 80})
    assert response.status_code == 200
    assert response.json()["hourly_rate"] == 80

    response = client.delete(f"/api/v1/clients/{created['id']}")
    assert response.status_code == 200
    assert client.get(f"/api/v1/clients/{created['id']}").status_code == 404


def test_client_validation_errors():
    assert client.post("/api/v1/clients", json={"name": "", "hourly_rate": 10}).status_code == 422
    assert client.post("/api/v1/clients", json={"name": "X", "hourly_rate": 0}).status_code == 422
    assert client.post("/api/v1/clients", json={"name": "X", "hourly_rate": 10, "email": "nope"}).status_code == 422
    assert client.post("/api/v1/clients", json={"name": "X", "hourly_rate": 10, "phone": "abc"}).status_code == 422
    assert client.post("/api/v1/clients", json={"name": "X", "hourly_rate": 10, "currency": "JPY"}).status_code == 422


def test_task_validation_and_defaults():
    acme = _create_client()
    assert client.post("/api/v1/tasks", json={"client_id": acme["id"], "description": "x", "hours_worked": 0.1}).status_code == 422
    assert client.post("/api/v1/tasks", json={"client_id": acme["id"], "description": "x", "hours_worked": 25}).status_code == 422
    bad_link = {"client_id": acme["id"], "description": "x", "hours_worked": 1, "task_link": "not a url"}
    assert client.post("/api/v1/tasks", json=bad_link).status_code == 422

    response = client.post("/api/v1/tasks", json={"client_id": 99, "description": "x", "hours_worked": 1})
    assert response.status_code == 422
    assert "client_id" in response.json()["fields"]

    task = client.post("/api/v1/tasks", json={"client_id": acme["id"], "description": "x", "hours_worked": 1}).json()
    assert task["task_date"] == "2024-03-20"
    assert task["client_name"] == "Tech Solutions Inc."
    assert task["total_amount"] == 75


def test_task_list_filters_and_ordering():
    a = _create_client("A", 10)
    b = _create_client("B", 20)
    _create_task(a["id"], "2024-03-01")
    _create_task(b["id"], "2024-03-02")
    _create_task(a["id"], "2024-03-03")

    all_tasks = client.get("/api/v1/tasks").json()
    assert [t["task_date"] for t in all_tasks] == ["2024-03-03", "2024-03-02", "2024-03-01"]

    only_a = client.get("/api/v1/tasks", params={"clientId": a["id"], "startDate": "2024-03-02"}).json()
    assert [t["task_date"] for t in only_a] == ["2024-03-03"]

    assert len(client.get("/api/v1/tasks", params={"clientId": 0}).json()) == 3


def test_delete_client_removes_its_tasks():
    acme = _create_client()
    task = _create_task(acme["id"])

    body = client.delete(f"/api/v1/clients/{acme['id']}").json()
    assert body["tasks_deleted"] == 1
    assert client.get(f"/api/v1/tasks/{task['id']}").status_code == 404


def test_report_defaults_to_current_month():
    a = _create_client("A", 50)
    b = _create_client("B", 100, currency="USD", conversion_rate=83)
    _create_task(a["id"], "2024-03-04", 6)
    _create_task(b["id"], "2024-03-05", 8)
    _create_task(b["id"], "2024-02-05", 8)

    body = client.get("/api/v1/reports").json()
    assert body["start_date"] == "2024-03-01"
    assert body["end_date"] == "2024-03-20"
    assert body["base_currency"] == "INR"
    report = body["report"]
    assert [r["client_name"] for r in report["rows"]] == ["B", "A"]
    assert report["grand_total_hours"] == 14
    assert report["grand_total_income"] == 66700
    assert [c["name"] for c in body["clients"]] == ["A", "B"]


def test_report_year_and_month_filters():
    a = _create_client("A", 50)
    _create_task(a["id"], "2023-07-04", 1)
    _create_task(a["id"], "2023-08-04", 2)

    july = client.get("/api/v1/reports", params={"year": 2023, "month": 7}).json()
    assert july["report"]["grand_total_hours"] == 1

    whole_year = client.get("/api/v1/reports", params={"year": 2023}).json()
    assert whole_year["report"]["grand_total_hours"] == 3

    # explicit range wins
    ranged = client.get(
        "/api/v1/reports", params={"startDate": "2023-08-01", "endDate": "2023-08-31", "year": 2023, "month": 7}
    ).json()
    assert ranged["report"]["grand_total_hours"] == 2


def test_monthly_breakdown():
    a = _create_client("A", 50)
    _create_task(a["id"], "2024-01-10", 1)
    _create_task(a["id"], "2024-03-10", 2)
    _create_task(a["id"], "2022-03-10", 2)

    body = client.get("/api/v1/reports/monthly").json()
    assert body["year"] == 2024
    assert [r["month_name"] for r in body["rows"]] == ["January", "March"]
    assert body["available_years"] == [2024, 2022]


def test_client_detail_report():
    a = _create_client("A", 50)
    _create_task(a["id"], "2024-03-01", 1)
    _create_task(a["id"], "2024-03-10", 2)

    body = client.get(f"/api/v1/reports/clients/{a['id']}", params={"startDate": "2024-03-05"}).json()
    assert [t["task_date"] for t in body["tasks"]] == ["2024-03-10"]
    assert body["total_income"] == 100
    assert client.get("/api/v1/reports/clients/999").status_code == 404


def test_exports_have_file_names_and_media_types():
    a = _create_client("Tech Solutions", 50)
    _create_task(a["id"], "2024-03-01", 1)

    response = client.get("/api/v1/reports/export.xlsx")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert 'filename="Report_20240320_164500.xlsx"' in response.headers["content-disposition"]

    response = client.get("/api/v1/clients/export.pdf")
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
    assert 'filename="AllClients_Report_20240320_164500.pdf"' in response.headers["content-disposition"]

    response = client.get(f"/api/v1/clients/{a['id']}/export.xlsx")
    assert 'filename="Tech_Solutions_Tasks_20240320_164500.xlsx"' in response.headers["content-disposition"]

    response = client.get(f"/api/v1/reports/clients/{a['id']}/export.pdf")
    assert 'filename="Tech_Solutions_Report_20240320_164500.pdf"' in response.headers["content-disposition"]


def test_export_unknown_client_and_format():
    assert client.get("/api/v1/clients/999/export.pdf").status_code == 404
    assert client.get("/api/v1/reports/clients/999/export.xlsx").status_code == 404
    assert client.get("/api/v1/reports/export.csv").status_code == 422


def test_disabled_export_returns_404(monkeypatch):
    from app.core.feature_flags import features

    monkeypatch.setattr(features, "export_pdf", False)
    assert client.get("/api/v1/reports/export.pdf").status_code == 404
    assert client.get("/api/v1/reports/export.xlsx").status_code == 200


def test_dashboard_and_csv():
    a = _create_client("A", 50)
    b = _create_client("B", 100)
    _create_task(a["id"], "2024-03-01", 2)
    _create_task(b["id"], "2024-03-02", 1)

    body = client.get("/api/v1/dashboard").json()
    assert body["total_clients"] == 2
    assert body["total_revenue"] == 200
    assert body["average_hourly_rate"] == 75
    assert body["recent_tasks"][0]["task_date"] == "2024-03-02"

    response = client.get("/api/v1/dashboard/export.csv")
    assert response.headers["content-type"].startswith("text/csv")
    assert response.text.splitlines()[0] == '"metric","value"'
    assert '"total_clients","2"' in response.text


def test_currency_lookup():
    assert client.get("/api/v1/lookups/currencies").json() == ["INR", "USD", "EUR", "GBP"]


class _UnreachableCollection:
    async def find_one(self, *args, **kwargs):
        raise ServerSelectionTimeoutError("localhost:27017: [Errno 111] Connection refused")


class _UnreachableDb:
    def __getitem__(self, name):
        return _UnreachableCollection()


class _RacingStore(BillingStore):
    """Another request deletes the client between load and save."""

    async def update_client(self, client_id, payload):
        await self.db["clients"].delete_one({"_id": client_id})
        return await super().update_client(client_id, payload)


def test_unreachable_store_returns_503():
    app.dependency_overrides[get_mongo_db] = lambda: _UnreachableDb()

    response = client.get("/api/v1/clients/1")
    assert response.status_code == 503
    assert response.json() == {"detail": "Data store unavailable"}


def test_client_removed_during_update_returns_409(isolated_db):
    acme = _create_client()
    app.dependency_overrides[get_store] = lambda: _RacingStore(isolated_db)

    response = client.put(f"/api/v1/clients/{acme['id']}", json={"name": "Renamed", "hourly_rate": 80})
    assert response.status_code == 409
    assert response.json() == {
        "detail": f"Client {acme['id']} was removed by someone else before your change was saved"
    }
