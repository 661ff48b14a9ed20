from datetime import date as Date
from datetime import datetime
from typing import Any

from finance_tracker.models import CamelModel, DateRange, FilterKind, Transaction


class InvestmentView(Transaction):
    gain_loss: float
    gain_loss_percentage: float


class PriceStatus(CamelModel):
    prices: dict[str, float]
    last_update: datetime | None = None
    age: str | None = None
    stale: bool
    scheduler: dict[str, Any]


class RefreshResult(CamelModel):
    status: str
    prices: dict[str, float] = {}
    fresh: int = 0
    last_error: str | None = None


class FilterRequest(CamelModel):
    filter: FilterKind


class CustomRangeRequest(CamelModel):
    start_date: Date
    end_date: Date | None = None


class CurrencyRequest(CamelModel):
    currency: str


class CategoryRequest(CamelModel):
    name: str


class PreferencesView(CamelModel):
    active_filter: FilterKind
    custom_range: DateRange | None = None
    currency: str
