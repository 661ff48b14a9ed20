import math

import pytest

from finance_tracker.domain.currency import (
    CURRENCIES,
    convert_amount,
    format_currency,
    get_available_currencies,
    get_currency,
    get_currency_symbol,
)


@pytest.mark.parametrize(
    ("amount", "code", "expected"),
    [
        (1234.56, "USD", "$1,234.56"),
        (1234.56, "TRY", "1.234,56 ₺"),
        (1234.5, "EUR", "1.234,50 €"),
        (-5, "GBP", "£-5.00"),
        (1234567.891, "CHF", "CHF1’234’567.89"),
        (10, "unknown", "$10.00"),
    ],
)
def test_format_currency(amount: float, code: str, expected: str) -> None:
    assert format_currency(amount, code) == expected


def test_convert_amount_goes_through_usd() -> None:
    assert math.isclose(convert_amount(100, "USD", "TRY"), 3189.0)
    assert math.isclose(convert_amount(3189.0, "TRY", "USD"), 100.0)
    assert convert_amount(42, "EUR", "EUR") == pytest.approx(42)


def test_lookup_helpers() -> None:
    assert get_currency("try").code == "TRY"
    assert get_currency(None).code == "USD"
    assert get_currency_symbol("JPY") == "¥"
    available = get_available_currencies()
    assert [item["code"] for item in available] == list(CURRENCIES)
    assert available[0]["label"] == "TRY (₺)"
