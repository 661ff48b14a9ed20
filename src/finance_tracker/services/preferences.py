from datetime import date as Date

import pydantic

from finance_tracker.domain.currency import CURRENCIES, DEFAULT_CURRENCY
from finance_tracker.errors import PersistenceError, ValidationError
from finance_tracker.logger import get_logger
from finance_tracker.models import DateRange, FilterKind
from finance_tracker.storage.base import KeyValueStore

logger = get_logger(__name__)

ACTIVE_FILTER_KEY = "activeFilter"
CUSTOM_RANGE_KEY = "customDateRange"
LAST_CUSTOM_RANGE_KEY = "lastCustomRange"
CURRENCY_KEY = "selectedCurrency"


class Preferences:
    """Persisted view settings: active filter, custom ranges and display currency."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        # Rolling 30-day window by default; monthly is opt-in
        self.active_filter = FilterKind.LAST_30_DAYS
        self.custom_range: DateRange | None = None
        self.currency = DEFAULT_CURRENCY

    def load(self) -> None:
        raw_filter = self._read(ACTIVE_FILTER_KEY)
        if raw_filter:
            try:
                self.active_filter = FilterKind(raw_filter)
            except ValueError:
                logger.warning("[PREFS] Unknown stored filter '%s'; keeping %s.", raw_filter, self.active_filter.value)
        self.custom_range = self._read_range(CUSTOM_RANGE_KEY)
        raw_currency = self._read(CURRENCY_KEY)
        if raw_currency in CURRENCIES:
            self.currency = raw_currency

    def set_filter(self, filter_kind: FilterKind) -> None:
        self.active_filter = filter_kind
        self._write(ACTIVE_FILTER_KEY, filter_kind.value)

        has_range = self.custom_range is not None and self.custom_range.start_date is not None
        if filter_kind == FilterKind.CUSTOM:
            if not has_range:
                last_range = self._read_range(LAST_CUSTOM_RANGE_KEY)
                if last_range is not None:
                    self.custom_range = last_range
                    self._write(CUSTOM_RANGE_KEY, last_range.model_dump_json(by_alias=True))
        elif has_range:
            self._write(LAST_CUSTOM_RANGE_KEY, self.custom_range.model_dump_json(by_alias=True))

    def set_custom_range(self, start_date: Date, end_date: Date | None = None) -> DateRange:
        if end_date is not None and end_date < start_date:
            raise ValidationError({"end_date": "End date must not be before the start date."})
        self.custom_range = DateRange(start_date=start_date, end_date=end_date)
        self.active_filter = FilterKind.CUSTOM
        self._write(CUSTOM_RANGE_KEY, self.custom_range.model_dump_json(by_alias=True))
        self._write(ACTIVE_FILTER_KEY, FilterKind.CUSTOM.value)
        return self.custom_range

    def set_currency(self, code: str) -> str:
        normalized = code.upper()
        if normalized not in CURRENCIES:
            raise ValidationError({"currency": f"Unsupported currency '{code}'."})
        self.currency = normalized
        self._write(CURRENCY_KEY, normalized)
        return normalized

    def _read(self, key: str) -> str | None:
        try:
            return self.store.get(key)
        except PersistenceError as exc:
            logger.error("[PREFS] Could not read %s: %s", key, exc)
            return None

    def _read_range(self, key: str) -> DateRange | None:
        raw = self._read(key)
        if not raw:
            return None
        try:
            return DateRange.model_validate_json(raw)
        except pydantic.ValidationError:
            logger.warning("[PREFS] Ignoring malformed %s.", key)
            return None

    def _write(self, key: str, value: str) -> None:
        try:
            self.store.set(key, value)
        except PersistenceError as exc:
            logger.error("[PREFS] Could not persist %s: %s", key, exc)
