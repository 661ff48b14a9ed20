import json
from datetime import date

import pytest

from finance_tracker.errors import ValidationError
from finance_tracker.models import DateRange, FilterKind
from finance_tracker.services.preferences import (
    ACTIVE_FILTER_KEY,
    CURRENCY_KEY,
    CUSTOM_RANGE_KEY,
    LAST_CUSTOM_RANGE_KEY,
    Preferences,
)
from finance_tracker.storage.memory import InMemoryStore


def test_defaults() -> None:
    preferences = Preferences(InMemoryStore())
    preferences.load()

    assert preferences.active_filter == FilterKind.LAST_30_DAYS
    assert preferences.custom_range is None
    assert preferences.currency == "TRY"


def test_settings_survive_reload() -> None:
    store = InMemoryStore()
    preferences = Preferences(store)
    preferences.set_custom_range(date(2024, 1, 1), date(2024, 1, 31))
    preferences.set_currency("eur")

    reloaded = Preferences(store)
    reloaded.load()

    assert reloaded.active_filter == FilterKind.CUSTOM
    assert reloaded.custom_range == DateRange(start_date=date(2024, 1, 1), end_date=date(2024, 1, 31))
    assert reloaded.currency == "EUR"
    assert json.loads(store.get(CUSTOM_RANGE_KEY)) == {"startDate": "2024-01-01", "endDate": "2024-01-31"}


def test_leaving_custom_remembers_last_range() -> None:
    store = InMemoryStore()
    preferences = Preferences(store)
    preferences.set_custom_range(date(2024, 2, 1))

    preferences.set_filter(FilterKind.ALL_TIME)

    assert store.get(ACTIVE_FILTER_KEY) == "allTime"
    assert json.loads(store.get(LAST_CUSTOM_RANGE_KEY))["startDate"] == "2024-02-01"


def test_returning_to_custom_restores_last_range() -> None:
    store = InMemoryStore({
        LAST_CUSTOM_RANGE_KEY: json.dumps({"startDate": "2023-12-01", "endDate": None}),
    })
    preferences = Preferences(store)
    preferences.load()

    preferences.set_filter(FilterKind.CUSTOM)

    assert preferences.custom_range == DateRange(start_date=date(2023, 12, 1))
    assert store.get(CUSTOM_RANGE_KEY) is not None


def test_invalid_inputs_are_rejected() -> None:
    preferences = Preferences(InMemoryStore())

    with pytest.raises(ValidationError):
        preferences.set_custom_range(date(2024, 2, 1), date(2024, 1, 1))
    with pytest.raises(ValidationError):
        preferences.set_currency("XYZ")
    assert preferences.currency == "TRY"


def test_malformed_stored_values_are_ignored() -> None:
    store = InMemoryStore({
        ACTIVE_FILTER_KEY: "yesterday",
        CUSTOM_RANGE_KEY: "{bad",
        CURRENCY_KEY: "XYZ",
    })
    preferences = Preferences(store)
    preferences.load()

    assert preferences.active_filter == FilterKind.LAST_30_DAYS
    assert preferences.custom_range is None
    assert preferences.currency == "TRY"
