from datetime import date
from typing import Optional

from pydantic import BaseModel

from .client_schema import ClientOut
from .common import Currency
from .task_schema import TaskOut


class ClientReportRow(BaseModel):
    client_id: int
    client_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    hourly_rate: float
    currency: Currency = Currency.inr
    conversion_rate: float = 1.0
    total_hours: float = 0.0
    total_income: float = 0.0  # client's own currency
    total_income_base: float = 0.0  # converted to the base currency
    task_count: int = 0


class ClientReport(BaseModel):
    rows: list[ClientReportRow]
    grand_total_hours: float = 0.0
    grand_total_income: float = 0.0  # base currency
    grand_total_native_income: float = 0.0
    total_tasks: int = 0


class MonthlyRow(BaseModel):
    month: int
    month_name: str
    total_hours: float = 0.0
    total_income: float = 0.0
    total_income_base: float = 0.0
    task_count: int = 0


class MonthlyBreakdown(BaseModel):
    year: int
    rows: list[MonthlyRow]
    total_hours: float = 0.0
    total_income: float = 0.0
    total_income_base: float = 0.0
    total_tasks: int = 0
    available_years: list[int] = []


class ClientDetailReport(BaseModel):
    client: ClientOut
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    tasks: list[TaskOut]
    total_hours: float = 0.0
    total_income: float = 0.0


class ReportOut(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    client_id: Optional[int] = None
    base_currency: str
    report: ClientReport
    clients: list[ClientOut]
