from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from app.core.clock import Clock, get_clock
from app.db.store import BillingStore, get_store
from app.schemas.client_schema import ClientIn, ClientListItem, ClientOut
from app.schemas.task_schema import TaskFilter
from app.services.billing import client_detail, summarize_by_client
from app.services.exports import ExportFormat, detail_export, ensure_export_enabled, summary_export
from app.services.report_files import DateRange


router = APIRouter(prefix="/clients", tags=["clients"])
logger = logging.getLogger("uvicorn.error")


# ---------------------- Exports ----------------------
# Declared before /{client_id} so "export.xlsx" is not read as an id


@router.get("/export.{fmt}")
async def export_all_clients(
    fmt: ExportFormat,
    store: BillingStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    ensure_export_enabled(fmt)
    tasks = await store.list_tasks()
    return summary_export(fmt, summarize_by_client(tasks), DateRange(), clock(), entity="AllClients")


@router.get("/{client_id}/export.{fmt}")
async def export_client_tasks(
    fmt: ExportFormat,
    client_id: int = Path(..., gt=0),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    store: BillingStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    ensure_export_enabled(fmt)
    client = await store.get_client(client_id)
    tasks = await store.list_tasks(TaskFilter(client_id=client_id, start_date=start_date, end_date=end_date))
    detail = client_detail(client, tasks, start_date, end_date)
    return detail_export(fmt, detail, DateRange(start_date, end_date), clock(), kind="Tasks")


# ---------------------- CRUD ----------------------


@router.get("", response_model=list[ClientListItem])
async def list_clients(
    active: Optional[bool] = Query(None, description="If true, only active clients ordered by name"),
    store: BillingStore = Depends(get_store),
):
    clients = await store.list_clients(active_only=bool(active))
    counts = await store.count_tasks_by_client()
    return [ClientListItem(**c.model_dump(), task_count=counts.get(c.id, 0)) for c in clients]


@router.get("/{client_id}", response_model=ClientOut)
async def get_client(client_id: int = Path(..., gt=0), store: BillingStore = Depends(get_store)):
    return await store.get_client(client_id)


@router.post("", response_model=ClientOut, status_code=status.HTTP_201_CREATED)
async def create_client(
    payload: ClientIn,
    store: BillingStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    return await store.create_client(payload, clock())


@router.put("/{client_id}", response_model=ClientOut)
async def update_client(
    payload: ClientIn,
    client_id: int = Path(..., gt=0),
    store: BillingStore = Depends(get_store),
):
    await store.get_client(client_id)
    return await store.update_client(client_id, payload)


@router.delete("/{client_id}")
async def delete_client(client_id: int = Path(..., gt=0), store: BillingStore = Depends(get_store)):
    client = await store.get_client(client_id)
    removed = await store.delete_client(client_id)
    return {"ok": True, "message": f"Client '{client.name}' deleted successfully!", "tasks_deleted": removed}
