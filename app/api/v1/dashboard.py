from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from app.core.config import settings
from app.db.store import BillingStore, get_store
from app.schemas.dashboard_schema import DashboardSummary
from app.services.billing import dashboard_summary


router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardSummary)
async def dashboard(store: BillingStore = Depends(get_store)):
    clients = await store.list_clients()
    tasks = await store.list_tasks()
    return dashboard_summary(
        clients,
        tasks,
        top_n=settings.DASHBOARD_TOP_CLIENTS,
        recent_n=settings.DASHBOARD_RECENT_TASKS,
    )


@router.get("/export.csv")
async def dashboard_export_csv(store: BillingStore = Depends(get_store)):
    # Simple CSV of summary metrics
    m = await dashboard(store=store)
    lines = [
        ["metric", "value"],
        ["total_clients", str(m.total_clients)],
        ["active_clients", str(m.active_clients)],
        ["total_tasks", str(m.total_tasks)],
        ["total_hours", f"{m.total_hours:.2f}"],
        ["total_revenue", f"{m.total_revenue:.2f}"],
        ["average_hourly_rate", f"{m.average_hourly_rate:.2f}"],
    ]
    for row in m.top_clients:
        lines.append([f"top_client:{row.client_name}", f"{row.total_income:.2f}"])
    # RFC 4180: quote values and double-quote embedded quotes
    csv = "\n".join(
        ",".join('"' + c.replace('"', '""') + '"' for c in row)
        for row in lines
    )
    return PlainTextResponse(content=csv, media_type="text/csv; charset=utf-8")
