from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from .common import Currency


class ClientIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)
    hourly_rate: float = Field(ge=0.01, le=10000)
    description: Optional[str] = Field(default=None, max_length=500)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=20, pattern=r"^[0-9+\-() ]+$")
    currency: Currency = Currency.inr
    # Multiplier into the base currency; only applied to USD clients
    conversion_rate: float = Field(default=1.0, ge=0)
    is_active: bool = True


class ClientOut(BaseModel):
    id: int
    name: str
    hourly_rate: float
    description: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    currency: Currency = Currency.inr
    conversion_rate: float = 1.0
    is_active: bool = True
    created_at: datetime


class ClientListItem(ClientOut):
    task_count: int = 0
