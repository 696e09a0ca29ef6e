"""Billing aggregation over already-loaded tasks.

Everything here is pure: callers fetch clients/tasks from the store and pass
them in, so the functions can be exercised without a database. Amounts are
always derived from the client's current hourly rate.
"""
from __future__ import annotations

import calendar
from datetime import date
from typing import Iterable, Literal, Optional, Sequence

from app.schemas.client_schema import ClientOut
from app.schemas.common import Currency
from app.schemas.dashboard_schema import DashboardSummary, RecentTask
from app.schemas.report_schema import (
    ClientDetailReport,
    ClientReport,
    ClientReportRow,
    MonthlyBreakdown,
    MonthlyRow,
)
from app.schemas.task_schema import TaskFilter, TaskOut


IncomeOrder = Literal["native_income", "base_income"]


def base_currency_income(native_income: float, currency: Currency | str, conversion_rate: float) -> float:
    # Only USD is converted; every other currency is treated as base currency
    if Currency(currency) == Currency.usd:
        return native_income * conversion_rate
    return native_income


def resolve_report_filter(task_filter: TaskFilter, today: date) -> TaskFilter:
    """Pin the filter to an explicit date window.

    Explicit start/end wins. Otherwise year/month select the window (a month
    without a year means that month of the current year). With nothing given
    the window is the current month up to today.
    """
    if task_filter.has_date_range:
        return task_filter
    year, month = task_filter.year, task_filter.month
    if month is not None and year is None:
        year = today.year
    if year is not None:
        start, end = task_filter.model_copy(update={"year": year}).date_window()
    else:
        start, end = today.replace(day=1), today
    return task_filter.model_copy(update={"start_date": start, "end_date": end, "year": year})


def filter_tasks(tasks: Iterable[TaskOut], task_filter: Optional[TaskFilter] = None) -> list[TaskOut]:
    if task_filter is None:
        return list(tasks)
    client_id = task_filter.effective_client_id
    start, end = task_filter.date_window()
    out: list[TaskOut] = []
    for task in tasks:
        if client_id is not None and task.client_id != client_id:
            continue
        if start is not None and task.task_date < start:
            continue
        if end is not None and task.task_date > end:
            continue
        out.append(task)
    return out


def _task_income(task: TaskOut) -> float:
    return task.hours_worked * task.client.hourly_rate if task.client else 0.0


def summarize_by_client(
    tasks: Iterable[TaskOut],
    order_by: IncomeOrder = "native_income",
) -> ClientReport:
    """One row per client present in the tasks, richest first.

    Ties keep the order in which clients were first encountered.
    """
    groups: dict[int, dict] = {}
    for task in tasks:
        acc = groups.get(task.client_id)
        if acc is None:
            acc = groups[task.client_id] = {"client": task.client, "hours": 0.0, "income": 0.0, "count": 0}
        acc["hours"] += task.hours_worked
        acc["income"] += _task_income(task)
        acc["count"] += 1

    rows: list[ClientReportRow] = []
    for client_id, acc in groups.items():
        client: Optional[ClientOut] = acc["client"]
        currency = client.currency if client else Currency.inr
        conversion_rate = client.conversion_rate if client else 1.0
        rows.append(ClientReportRow(
            client_id=client_id,
            client_name=client.name if client else "Unknown",
            email=client.email if client else None,
            phone=client.phone if client else None,
            hourly_rate=client.hourly_rate if client else 0.0,
            currency=currency,
            conversion_rate=conversion_rate,
            total_hours=round(acc["hours"], 2),
            total_income=round(acc["income"], 2),
            total_income_base=round(base_currency_income(acc["income"], currency, conversion_rate), 2),
            task_count=acc["count"],
        ))

    key = "total_income_base" if order_by == "base_income" else "total_income"
    rows.sort(key=lambda r: getattr(r, key), reverse=True)

    return ClientReport(
        rows=rows,
        grand_total_hours=round(sum(r.total_hours for r in rows), 2),
        grand_total_income=round(sum(r.total_income_base for r in rows), 2),
        grand_total_native_income=round(sum(r.total_income for r in rows), 2),
        total_tasks=sum(r.task_count for r in rows),
    )


def monthly_breakdown(
    tasks: Iterable[TaskOut],
    year: int,
    available_years: Optional[Sequence[int]] = None,
) -> MonthlyBreakdown:
    months: dict[int, dict] = {}
    for task in tasks:
        if task.task_date.year != year:
            continue
        acc = months.setdefault(task.task_date.month, {"hours": 0.0, "income": 0.0, "base": 0.0, "count": 0})
        income = _task_income(task)
        acc["hours"] += task.hours_worked
        acc["income"] += income
        if task.client is not None:
            acc["base"] += base_currency_income(income, task.client.currency, task.client.conversion_rate)
        acc["count"] += 1

    rows = [
        MonthlyRow(
            month=m,
            month_name=calendar.month_name[m],
            total_hours=round(acc["hours"], 2),
            total_income=round(acc["income"], 2),
            total_income_base=round(acc["base"], 2),
            task_count=acc["count"],
        )
        for m, acc in sorted(months.items())
    ]
    return MonthlyBreakdown(
        year=year,
        rows=rows,
        total_hours=round(sum(r.total_hours for r in rows), 2),
        total_income=round(sum(r.total_income for r in rows), 2),
        total_income_base=round(sum(r.total_income_base for r in rows), 2),
        total_tasks=sum(r.task_count for r in rows),
        available_years=list(available_years or []),
    )


def top_clients(tasks: Iterable[TaskOut], limit: int = 5) -> list[ClientReportRow]:
    return summarize_by_client(tasks, order_by="native_income").rows[:limit]


def recent_tasks(tasks: Iterable[TaskOut], limit: int = 10) -> list[RecentTask]:
    ordered = sorted(tasks, key=lambda t: (t.task_date, t.created_at), reverse=True)
    return [
        RecentTask(
            task_id=t.id,
            client_name=t.client_name,
            description=t.description,
            task_date=t.task_date,
            hours_worked=t.hours_worked,
            amount=t.total_amount,
        )
        for t in ordered[:limit]
    ]


def dashboard_summary(
    clients: Sequence[ClientOut],
    tasks: Sequence[TaskOut],
    top_n: int = 5,
    recent_n: int = 10,
) -> DashboardSummary:
    return DashboardSummary(
        total_clients=len(clients),
        active_clients=sum(1 for c in clients if c.is_active),
        total_tasks=len(tasks),
        total_hours=round(sum(t.hours_worked for t in tasks), 2),
        total_revenue=round(sum(_task_income(t) for t in tasks), 2),
        average_hourly_rate=round(sum(c.hourly_rate for c in clients) / len(clients), 2) if clients else 0.0,
        top_clients=top_clients(tasks, top_n),
        recent_tasks=recent_tasks(tasks, recent_n),
    )


def client_detail(
    client: ClientOut,
    tasks: Iterable[TaskOut],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> ClientDetailReport:
    """Tasks of one client in the window, newest first, priced at the current rate."""
    selected = filter_tasks(tasks, TaskFilter(client_id=client.id, start_date=start_date, end_date=end_date))
    selected = [t.model_copy(update={"client": client}) for t in selected]
    selected.sort(key=lambda t: t.task_date, reverse=True)
    return ClientDetailReport(
        client=client,
        start_date=start_date,
        end_date=end_date,
        tasks=selected,
        total_hours=round(sum(t.hours_worked for t in selected), 2),
        total_income=round(sum(t.hours_worked * client.hourly_rate for t in selected), 2),
    )
