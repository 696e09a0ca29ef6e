from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, TypeAdapter, computed_field, field_validator

from .client_schema import ClientOut


_url_adapter = TypeAdapter(HttpUrl)


class TaskIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    client_id: int = Field(gt=0)
    task_date: Optional[date] = None  # defaults to today
    description: str = Field(min_length=1, max_length=1000)
    task_link: Optional[str] = Field(default=None, max_length=500)
    hours_worked: float = Field(ge=0.25, le=24)

    @field_validator("task_link")
    @classmethod
    def _validate_link(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        # Keep the string as typed; HttpUrl would normalize it
        _url_adapter.validate_python(v)
        return v


class TaskOut(BaseModel):
    id: int
    client_id: int
    task_date: date
    description: str
    task_link: Optional[str] = None
    hours_worked: float
    created_at: datetime
    client: Optional[ClientOut] = None

    @computed_field
    @property
    def client_name(self) -> str:
        return self.client.name if self.client else "Unknown"

    @computed_field
    @property
    def total_amount(self) -> float:
        # Always the client's current rate, never a snapshot
        if self.client is None:
            return 0.0
        return round(self.hours_worked * self.client.hourly_rate, 2)


class TaskFilter(BaseModel):
    client_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    year: Optional[int] = Field(default=None, ge=1, le=9999)
    month: Optional[int] = Field(default=None, ge=1, le=12)

    @property
    def effective_client_id(self) -> Optional[int]:
        # 0 means "all clients"
        if self.client_id is None or self.client_id <= 0:
            return None
        return self.client_id

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None or self.end_date is not None

    def date_window(self) -> tuple[Optional[date], Optional[date]]:
        """Inclusive (start, end) the filter selects.

        An explicit range boundary wins and the year/month selector is then
        ignored. A year alone selects the whole year; a month without a year
        selects nothing on its own.
        """
        if self.has_date_range:
            return self.start_date, self.end_date
        if self.year is not None and self.month is not None:
            last_day = calendar.monthrange(self.year, self.month)[1]
            return date(self.year, self.month, 1), date(self.year, self.month, last_day)
        if self.year is not None:
            return date(self.year, 1, 1), date(self.year, 12, 31)
        return None, None
