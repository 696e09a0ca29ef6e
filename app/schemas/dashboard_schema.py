from __future__ import annotations

from datetime import date

from pydantic import BaseModel

from .report_schema import ClientReportRow


class RecentTask(BaseModel):
    task_id: int
    client_name: str
    description: str
    task_date: date
    hours_worked: float
    amount: float


class DashboardSummary(BaseModel):
    total_clients: int = 0
    active_clients: int = 0
    total_tasks: int = 0
    total_hours: float = 0.0
    total_revenue: float = 0.0
    average_hourly_rate: float = 0.0
    top_clients: list[ClientReportRow] = []
    recent_tasks: list[RecentTask] = []
