import math
from collections.abc import Mapping

from finance_tracker.domain.prices import is_valid_price
from finance_tracker.logger import get_logger
from finance_tracker.models import Transaction
from finance_tracker.services.ledger import LedgerStore
from finance_tracker.services.price_cache import PriceCache

logger = get_logger(__name__)


def value_for(transaction: Transaction, prices: Mapping[str, float]) -> float | None:
    """Market value of a gold holding, or None when it cannot be priced."""
    if not transaction.is_gold or not transaction.gold_category:
        return None
    price = prices.get(transaction.gold_category)
    if not is_valid_price(price) or not transaction.quantity or transaction.quantity <= 0:
        return None
    return float(price) * transaction.quantity


class InvestmentValuator:
    def __init__(self, ledger: LedgerStore, price_cache: PriceCache):
        self.ledger = ledger
        self.price_cache = price_cache

    def pending_updates(self, prices: Mapping[str, float]) -> list[Transaction]:
        updates: list[Transaction] = []
        for transaction in self.ledger.transactions:
            new_value = value_for(transaction, prices)
            if new_value is None:
                continue
            current = transaction.current_value
            if current is not None and math.isclose(current, new_value, rel_tol=1e-12, abs_tol=1e-9):
                continue
            updates.append(transaction.model_copy(update={"current_value": new_value}))
        return updates

    def revalue(self, prices: Mapping[str, float] | None = None) -> int:
        """Apply changed gold valuations in one ledger mutation; returns how many changed."""
        if prices is None:
            prices = self.price_cache.current_prices()
        updates = self.pending_updates(prices)
        if not updates:
            logger.debug("[VALUATION] Gold holdings already match current prices.")
            return 0
        self.ledger.update_batch(updates)
        logger.info("[VALUATION] Revalued %d gold holdings.", len(updates))
        return len(updates)
