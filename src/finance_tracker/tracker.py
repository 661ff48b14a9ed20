from collections.abc import Callable, Iterable, Mapping
from datetime import date as Date
from datetime import datetime
from typing import Any

from finance_tracker.domain import aggregation
from finance_tracker.domain.validation import parse_transaction, validate_transaction
from finance_tracker.errors import PersistenceError, ValidationError
from finance_tracker.integration.gold_api import GoldPriceClient
from finance_tracker.logger import get_logger
from finance_tracker.models import (
    CategoryShare,
    DateRange,
    FilterKind,
    PriceSnapshot,
    Totals,
    Transaction,
)
from finance_tracker.services.categories import CategoryCatalog
from finance_tracker.services.events import ChangeNotifier, Subscriber
from finance_tracker.services.ledger import IdGenerator, LedgerStore
from finance_tracker.services.preferences import Preferences
from finance_tracker.services.price_cache import PriceCache, utc_now
from finance_tracker.services.scheduler import PriceRefreshScheduler
from finance_tracker.services.valuation import InvestmentValuator, value_for
from finance_tracker.storage.base import KeyValueStore

logger = get_logger(__name__)

TransactionInput = Mapping[str, Any] | Transaction


class FinanceTracker:
    """
    Entry point for consumers of the ledger and price subsystem.

    Wires the store, ledger, price cache, valuator and refresh scheduler
    together and exposes the operations the UI layer calls.
    """

    def __init__(
        self,
        store: KeyValueStore,
        client: GoldPriceClient | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
        today: Callable[[], Date] = Date.today,
        refresh_interval: float | None = None,
        id_factory: IdGenerator | None = None,
    ):
        self.store = store
        self.today = today
        self.notifier = ChangeNotifier()
        self.ledger = LedgerStore(store, self.notifier, id_factory=id_factory)
        self.prices = PriceCache(store, self.notifier, clock=clock)
        self.valuator = InvestmentValuator(self.ledger, self.prices)
        self.client = client or GoldPriceClient()
        self.scheduler = PriceRefreshScheduler(
            self.client,
            self.prices,
            interval=refresh_interval,
            on_refreshed=self.valuator.revalue,
        )
        self.preferences = Preferences(store)
        self.categories = CategoryCatalog(store)

    def load(self) -> None:
        self.ledger.load()
        self.preferences.load()
        # Gold holdings get a valuation even before the first refresh
        self.valuator.revalue()

    async def start(self) -> None:
        await self.scheduler.start()

    async def stop(self) -> None:
        await self.scheduler.stop()

    async def aclose(self) -> None:
        await self.stop()
        await self.client.aclose()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        return self.notifier.subscribe(callback)

    def _prepare(self, payload: TransactionInput, existing: Transaction | None = None) -> Transaction:
        transaction = validate_transaction(parse_transaction(payload), self.prices.categories())
        if not transaction.is_investment:
            return transaction

        changes: dict[str, Any] = {"amount": transaction.purchase_price}
        if not transaction.category.strip() and transaction.asset_type is not None:
            changes["category"] = transaction.asset_type.value
        market_value = value_for(transaction, self.prices.current_prices())
        if market_value is not None:
            changes["current_value"] = market_value
        elif transaction.current_value is None:
            if existing is not None and existing.current_value is not None:
                changes["current_value"] = existing.current_value
            else:
                changes["current_value"] = (transaction.purchase_price or 0.0) * (transaction.quantity or 0.0)
        return transaction.model_copy(update=changes)

    def add_transaction(self, payload: TransactionInput) -> Transaction:
        stored = self.ledger.add(self._prepare(payload))
        if not stored.is_investment:
            self.categories.add(stored.category)
        logger.info("[LEDGER] Added %s transaction %s.", stored.type.value if stored.type else "?", stored.id)
        return stored

    def update_transaction(self, payload: TransactionInput) -> Transaction | None:
        transaction = parse_transaction(payload)
        if not transaction.id:
            raise ValidationError({"id": "An id is required to update a transaction."})
        existing = self.ledger.get(transaction.id)
        prepared = self._prepare(transaction, existing)
        self.ledger.update(prepared)
        return self.ledger.get(transaction.id)

    def delete_transaction(self, transaction_id: str) -> bool:
        existed = self.ledger.get(transaction_id) is not None
        self.ledger.delete(transaction_id)
        return existed

    def set_all_transactions(self, payloads: Iterable[TransactionInput]) -> tuple[Transaction, ...]:
        transactions = [parse_transaction(payload) for payload in payloads]
        self.ledger.replace(transactions)
        self.valuator.revalue()
        return self.ledger.transactions

    def _resolve_filter(
        self,
        filter_kind: FilterKind | None,
        custom_range: DateRange | None,
    ) -> tuple[FilterKind, DateRange | None]:
        kind = filter_kind or self.preferences.active_filter
        if custom_range is None and kind == FilterKind.CUSTOM:
            custom_range = self.preferences.custom_range
        return kind, custom_range

    def get_filtered_transactions(
        self,
        filter_kind: FilterKind | None = None,
        custom_range: DateRange | None = None,
    ) -> list[Transaction]:
        kind, window = self._resolve_filter(filter_kind, custom_range)
        return aggregation.filter_transactions(self.ledger.transactions, kind, window, today=self.today())

    def get_filtered_totals(
        self,
        filter_kind: FilterKind | None = None,
        custom_range: DateRange | None = None,
    ) -> Totals:
        return aggregation.compute_totals(self.get_filtered_transactions(filter_kind, custom_range))

    def get_expense_breakdown(
        self,
        filter_kind: FilterKind | None = None,
        custom_range: DateRange | None = None,
    ) -> list[CategoryShare]:
        return aggregation.expense_breakdown(self.get_filtered_transactions(filter_kind, custom_range))

    def get_investments(self) -> list[Transaction]:
        return [tx for tx in self.ledger.transactions if tx.is_investment]

    def calculate_gain_loss(self, investment: Transaction) -> float:
        return aggregation.calculate_gain_loss(investment)

    def get_gold_categories(self) -> list[str]:
        return self.prices.categories()

    def get_current_prices(self) -> dict[str, float]:
        return self.prices.current_prices()

    def get_price_snapshot(self) -> PriceSnapshot | None:
        return self.prices.get()

    async def force_refresh_prices(self) -> dict[str, float] | None:
        logger.info("[PRICES] Manual refresh requested.")
        return await self.scheduler.refresh_now()

    def clear_all_data(self) -> None:
        try:
            keys = self.store.get_all_keys()
            self.store.remove_many(keys)
            logger.info("[STORE] Removed %d keys.", len(keys))
        except PersistenceError as exc:
            logger.error("[STORE] Could not clear stored data: %s", exc)
        self.ledger.reset()
        self.prices.forget()
        self.preferences = Preferences(self.store)
        self.categories.load()
