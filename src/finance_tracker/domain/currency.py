from dataclasses import dataclass


@dataclass(frozen=True)
class Currency:
    code: str
    symbol: str
    position: str  # "before" or "after" the number
    rate: float  # units per USD
    thousands_sep: str = ","
    decimal_sep: str = "."


CURRENCIES: dict[str, Currency] = {
    currency.code: currency
    for currency in (
        Currency("TRY", "₺", "after", 31.89, ".", ","),
        Currency("USD", "$", "before", 1.0),
        Currency("EUR", "€", "after", 0.91, ".", ","),
        Currency("GBP", "£", "before", 0.79),
        Currency("JPY", "¥", "before", 149.45),
        Currency("CNY", "¥", "before", 7.23),
        Currency("INR", "₹", "before", 83.12),
        Currency("AUD", "$", "before", 1.54),
        Currency("CAD", "$", "before", 1.36),
        Currency("CHF", "CHF", "before", 0.89, "’", "."),
    )
}

DEFAULT_CURRENCY = "TRY"


def get_currency(code: str | None) -> Currency:
    return CURRENCIES.get((code or "").upper(), CURRENCIES["USD"])


def convert_amount(amount: float, from_currency: str = "USD", to_currency: str = "USD") -> float:
    """Convert through USD using the fixed rate table."""
    return amount / get_currency(from_currency).rate * get_currency(to_currency).rate


def format_number(amount: float, currency: Currency) -> str:
    grouped = f"{amount:,.2f}"
    return (
        grouped.replace(",", "\0")
        .replace(".", currency.decimal_sep)
        .replace("\0", currency.thousands_sep)
    )


def format_currency(amount: float, currency_code: str = "USD") -> str:
    currency = get_currency(currency_code)
    number = format_number(amount, currency)
    if currency.position == "before":
        return f"{currency.symbol}{number}"
    return f"{number} {currency.symbol}"


def get_currency_symbol(currency_code: str = "USD") -> str:
    return get_currency(currency_code).symbol


def get_available_currencies() -> list[dict[str, str]]:
    return [
        {"code": code, "symbol": currency.symbol, "label": f"{code} ({currency.symbol})"}
        for code, currency in CURRENCIES.items()
    ]
