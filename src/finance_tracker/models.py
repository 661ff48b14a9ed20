from datetime import date as Date
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class TransactionType(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"
    INVESTMENT = "investment"


class AssetType(str, Enum):
    STOCK = "Stock"
    CRYPTOCURRENCY = "Cryptocurrency"
    BOND = "Bond"
    MUTUAL_FUND = "Mutual Fund"
    ETF = "ETF"
    REAL_ESTATE = "Real Estate"
    GOLD = "Gold"
    FOREIGN_CURRENCY = "Foreign Currency"
    OTHER = "Other"


class FilterKind(str, Enum):
    LAST_30_DAYS = "last30Days"
    MONTHLY = "monthly"
    ALL_TIME = "allTime"
    CUSTOM = "custom"


class CamelModel(BaseModel):
    # Stored JSON and API payloads use camelCase keys
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Transaction(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str | None = None
    description: str = ""
    amount: float
    date: Date
    category: str = ""
    is_recurring: bool = False
    type: TransactionType | None = None

    asset_type: AssetType | None = None
    symbol: str | None = None
    name: str | None = None
    quantity: float | None = None
    purchase_price: float | None = None
    current_value: float | None = None
    fees: float = 0.0
    gold_category: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("date", mode="before")
    @classmethod
    def _strip_time(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str) and "T" in value:
            return value.split("T", 1)[0]
        return value

    @field_validator("is_recurring", mode="before")
    @classmethod
    def _coerce_recurring(cls, value: Any) -> Any:
        if value is None:
            return False
        if isinstance(value, str):
            return value
        return bool(value)

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("fees", mode="before")
    @classmethod
    def _default_fees(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @property
    def is_investment(self) -> bool:
        return self.type == TransactionType.INVESTMENT

    @property
    def is_gold(self) -> bool:
        return self.is_investment and self.asset_type == AssetType.GOLD

    @property
    def cost_basis(self) -> float:
        return (self.purchase_price or 0.0) * (self.quantity or 0.0) + (self.fees or 0.0)

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class DateRange(CamelModel):
    start_date: Date | None = None
    end_date: Date | None = None


class Totals(CamelModel):
    income: float = 0.0
    expenses: float = 0.0
    investment_value: float = 0.0
    investment_purchase_total: float = 0.0
    investment_value_difference: float = 0.0
    total: float = 0.0


class CategoryShare(CamelModel):
    category: str
    amount: float
    percentage: float


class PriceSnapshot(CamelModel):
    prices: dict[str, float]
    last_update: datetime
