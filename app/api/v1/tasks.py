from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from app.core.clock import Clock, get_clock
from app.db.store import BillingStore, get_store
from app.schemas.task_schema import TaskFilter, TaskIn, TaskOut


router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=list[TaskOut])
async def list_tasks(
    client_id: Optional[int] = Query(None, alias="clientId", description="0 or absent means all clients"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    store: BillingStore = Depends(get_store),
):
    tasks = await store.list_tasks(TaskFilter(client_id=client_id, start_date=start_date, end_date=end_date))
    # Task list pages show the latest work first
    tasks.sort(key=lambda t: (t.task_date, t.created_at), reverse=True)
    return tasks


@router.get("/{task_id}", response_model=TaskOut)
async def get_task(task_id: int = Path(..., gt=0), store: BillingStore = Depends(get_store)):
    return await store.get_task(task_id)


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
async def create_task(
    payload: TaskIn,
    store: BillingStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    now = clock()
    if payload.task_date is None:
        payload = payload.model_copy(update={"task_date": now.date()})
    return await store.create_task(payload, now)


@router.put("/{task_id}", response_model=TaskOut)
async def update_task(
    payload: TaskIn,
    task_id: int = Path(..., gt=0),
    store: BillingStore = Depends(get_store),
):
    await store.get_task(task_id)
    return await store.update_task(task_id, payload)


@router.delete("/{task_id}")
async def delete_task(task_id: int = Path(..., gt=0), store: BillingStore = Depends(get_store)):
    await store.get_task(task_id)
    await store.delete_task(task_id)
    return {"ok": True, "message": "Task deleted successfully!"}
