from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from app.core.clock import Clock, get_clock
from app.core.config import settings
from app.core.feature_flags import features
from app.db.store import BillingStore, get_store
from app.schemas.report_schema import ClientDetailReport, MonthlyBreakdown, ReportOut
from app.schemas.task_schema import TaskFilter
from app.services.billing import (
    IncomeOrder,
    client_detail,
    monthly_breakdown,
    resolve_report_filter,
    summarize_by_client,
)
from app.services.exports import ExportFormat, detail_export, ensure_export_enabled, summary_export
from app.services.report_files import DateRange


router = APIRouter(prefix="/reports", tags=["reports"])


def report_filter(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    client_id: Optional[int] = Query(None, alias="clientId", description="0 or absent means all clients"),
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
) -> TaskFilter:
    return TaskFilter(client_id=client_id, start_date=start_date, end_date=end_date, year=year, month=month)


def _export_filter(task_filter: TaskFilter, today: date) -> TaskFilter:
    # Exports cover all time when nothing is given; a bare month still means this year
    if task_filter.month is not None and task_filter.year is None and not task_filter.has_date_range:
        return task_filter.model_copy(update={"year": today.year})
    return task_filter


@router.get("", response_model=ReportOut)
async def client_report(
    task_filter: TaskFilter = Depends(report_filter),
    order_by: IncomeOrder = Query("native_income", alias="orderBy"),
    store: BillingStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    resolved = resolve_report_filter(task_filter, clock().date())
    tasks = await store.list_tasks(resolved)
    return ReportOut(
        start_date=resolved.start_date,
        end_date=resolved.end_date,
        client_id=resolved.effective_client_id,
        base_currency=settings.BASE_CURRENCY,
        report=summarize_by_client(tasks, order_by=order_by),
        clients=await store.list_clients(active_only=True),
    )


@router.get("/monthly", response_model=MonthlyBreakdown)
async def monthly_report(
    year: Optional[int] = Query(None, ge=1, le=9999),
    store: BillingStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    if not features.monthly_breakdown:
        raise HTTPException(status_code=404, detail="Monthly breakdown disabled")
    year = year or clock().year
    tasks = await store.list_tasks(TaskFilter(year=year))
    return monthly_breakdown(tasks, year, await store.available_years())


@router.get("/export.{fmt}")
async def export_report(
    fmt: ExportFormat,
    task_filter: TaskFilter = Depends(report_filter),
    store: BillingStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    ensure_export_enabled(fmt)
    now = clock()
    task_filter = _export_filter(task_filter, now.date())
    tasks = await store.list_tasks(task_filter)
    start, end = task_filter.date_window()
    return summary_export(fmt, summarize_by_client(tasks), DateRange(start, end), now)


@router.get("/clients/{client_id}", response_model=ClientDetailReport)
async def client_detail_report(
    client_id: int = Path(..., gt=0),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    store: BillingStore = Depends(get_store),
):
    client = await store.get_client(client_id)
    tasks = await store.list_tasks(TaskFilter(client_id=client_id, start_date=start_date, end_date=end_date))
    return client_detail(client, tasks, start_date, end_date)


@router.get("/clients/{client_id}/export.{fmt}")
async def export_client_report(
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
    return detail_export(fmt, detail, DateRange(start_date, end_date), clock(), kind="Report")
