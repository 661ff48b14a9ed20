from collections import defaultdict
from collections.abc import Iterable
from datetime import date as Date
from datetime import timedelta

from finance_tracker.domain.ordering import sort_transactions
from finance_tracker.models import CategoryShare, DateRange, FilterKind, Totals, Transaction

LAST_DAYS_WINDOW = 30
FALLBACK_CATEGORY = "Other"


def resolve_window(
    filter_kind: FilterKind,
    custom_range: DateRange | None,
    today: Date,
) -> tuple[Date | None, Date | None]:
    """Inclusive ``(start, end)`` dates for a filter; None means unbounded."""
    if filter_kind == FilterKind.LAST_30_DAYS:
        return today - timedelta(days=LAST_DAYS_WINDOW), None
    if filter_kind == FilterKind.MONTHLY:
        return today.replace(day=1), None
    if filter_kind == FilterKind.CUSTOM:
        if custom_range is None or custom_range.start_date is None:
            return None, None
        return custom_range.start_date, custom_range.end_date or today
    return None, None


def filter_transactions(
    transactions: Iterable[Transaction],
    filter_kind: FilterKind = FilterKind.ALL_TIME,
    custom_range: DateRange | None = None,
    *,
    today: Date | None = None,
) -> list[Transaction]:
    start, end = resolve_window(filter_kind, custom_range, today or Date.today())
    selected = (
        tx
        for tx in transactions
        if (start is None or tx.date >= start) and (end is None or tx.date <= end)
    )
    return list(sort_transactions(selected))


def calculate_gain_loss(investment: Transaction) -> float:
    return (investment.current_value or 0.0) - investment.cost_basis


def gain_loss_percentage(investment: Transaction) -> float:
    if not investment.purchase_price or investment.purchase_price <= 0:
        return 0.0
    basis = investment.cost_basis
    if basis <= 0:
        return 0.0
    return calculate_gain_loss(investment) / basis * 100


def compute_totals(transactions: Iterable[Transaction]) -> Totals:
    """
    Headline figures for a set of transactions.

    Investments contribute their unrealized gain or loss to ``total``, not
    their market value.
    """
    income = expenses = 0.0
    investment_value = investment_purchase_total = 0.0
    for tx in transactions:
        if tx.is_investment:
            investment_value += tx.current_value or 0.0
            investment_purchase_total += tx.cost_basis
        elif tx.amount > 0:
            income += tx.amount
        elif tx.amount < 0:
            expenses += tx.amount

    difference = investment_value - investment_purchase_total
    return Totals(
        income=income,
        expenses=expenses,
        investment_value=investment_value,
        investment_purchase_total=investment_purchase_total,
        investment_value_difference=difference,
        total=income + expenses + difference,
    )


def expense_breakdown(transactions: Iterable[Transaction]) -> list[CategoryShare]:
    spent: dict[str, float] = defaultdict(float)
    for tx in transactions:
        if not tx.is_investment and tx.amount < 0:
            spent[tx.category or FALLBACK_CATEGORY] += abs(tx.amount)

    grand_total = sum(spent.values())
    ranked = sorted(spent.items(), key=lambda item: item[1], reverse=True)
    return [
        CategoryShare(
            category=category,
            amount=amount,
            percentage=amount / grand_total * 100 if grand_total else 0.0,
        )
        for category, amount in ranked
    ]
