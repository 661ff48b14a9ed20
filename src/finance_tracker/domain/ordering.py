from collections.abc import Iterable

from finance_tracker.models import Transaction


def _id_rank(transaction_id: str | None) -> tuple[int, int, str]:
    value = transaction_id or ""
    if value.isdigit():
        return (1, int(value), value)
    return (0, 0, value)


def sort_key(transaction: Transaction) -> tuple:
    return (transaction.date.toordinal(), _id_rank(transaction.id))


def sort_transactions(transactions: Iterable[Transaction]) -> tuple[Transaction, ...]:
    """Newest date first; same-day entries by descending id."""
    return tuple(sorted(transactions, key=sort_key, reverse=True))
