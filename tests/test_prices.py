import math

import pytest

from finance_tracker.domain.prices import (
    DEFAULT_GOLD_PRICES,
    GOLD_CATEGORIES,
    GOLD_CATEGORY_CODES,
    PREFERRED_CATEGORY_ORDER,
    is_valid_price,
    parse_localized_decimal,
)


def test_every_category_has_a_default_price() -> None:
    assert len(GOLD_CATEGORY_CODES) == 16
    assert set(DEFAULT_GOLD_PRICES) == set(GOLD_CATEGORIES)
    assert all(is_valid_price(price) for price in DEFAULT_GOLD_PRICES.values())
    assert set(PREFERRED_CATEGORY_ORDER) <= set(GOLD_CATEGORIES)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("3.475,89", 3475.89),
        ("22.707,00", 22707.0),
        ("116.750,5", 116750.5),
        ("120,25", 120.25),
        (" 1.000 ", 1000.0),
        (42, 42.0),
        (3.5, 3.5),
    ],
)
def test_parse_localized_decimal(raw: object, expected: float) -> None:
    assert math.isclose(parse_localized_decimal(raw), expected)


@pytest.mark.parametrize("raw", ["", "abc", "1,2,3", None, True, [1], "nan", "inf"])
def test_parse_localized_decimal_rejects_garbage(raw: object) -> None:
    with pytest.raises(ValueError):
        parse_localized_decimal(raw)


def test_is_valid_price() -> None:
    assert is_valid_price(1)
    assert is_valid_price(0.01)
    assert not is_valid_price(0)
    assert not is_valid_price(-5.0)
    assert not is_valid_price(float("nan"))
    assert not is_valid_price(float("inf"))
    assert not is_valid_price("3475.89")
    assert not is_valid_price(None)
    assert not is_valid_price(True)
