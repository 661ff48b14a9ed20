import json
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

import pydantic

from finance_tracker.domain.ordering import sort_transactions
from finance_tracker.errors import PersistenceError
from finance_tracker.logger import get_logger
from finance_tracker.models import Transaction, TransactionType
from finance_tracker.services.events import ChangeNotifier, LedgerChanged
from finance_tracker.storage.base import KeyValueStore

logger = get_logger(__name__)

TRANSACTIONS_KEY = "@transactions"


@dataclass(frozen=True)
class Add:
    transaction: Transaction


@dataclass(frozen=True)
class Update:
    transaction: Transaction


@dataclass(frozen=True)
class Delete:
    transaction_id: str


@dataclass(frozen=True)
class Replace:
    transactions: tuple[Transaction, ...]


@dataclass(frozen=True)
class UpdateBatch:
    transactions: tuple[Transaction, ...]


Command = Add | Update | Delete | Replace | UpdateBatch
Snapshot = tuple[Transaction, ...]


class IdGenerator:
    """Millisecond timestamps, bumped so every id is larger than the last one seen."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last = 0

    def observe(self, transaction_id: str | None) -> None:
        if transaction_id and transaction_id.isdigit():
            self._last = max(self._last, int(transaction_id))

    def __call__(self) -> str:
        candidate = int(self._clock() * 1000)
        if candidate <= self._last:
            candidate = self._last + 1
        self._last = candidate
        return str(candidate)


class LedgerStore:
    """
    Ordered transaction collection driven by explicit commands.

    ``dispatch`` never raises for well-typed commands: updates and deletes
    that reference an unknown id are logged and leave the snapshot alone.
    Every applied command writes the full snapshot through to the store and
    publishes a ``LedgerChanged`` event.
    """

    def __init__(
        self,
        store: KeyValueStore,
        notifier: ChangeNotifier | None = None,
        id_factory: IdGenerator | None = None,
    ):
        self.store = store
        self.notifier = notifier or ChangeNotifier()
        self._ids = id_factory or IdGenerator()
        self._transactions: Snapshot = ()
        self._last_added: Transaction | None = None
        self.revision = 0

    @property
    def transactions(self) -> Snapshot:
        return self._transactions

    def get(self, transaction_id: str) -> Transaction | None:
        for transaction in self._transactions:
            if transaction.id == transaction_id:
                return transaction
        return None

    def categories(self) -> list[str]:
        return list(dict.fromkeys(tx.category for tx in self._transactions if tx.category))

    def load(self) -> Snapshot:
        try:
            raw = self.store.get(TRANSACTIONS_KEY)
        except PersistenceError as exc:
            logger.error("[LEDGER] Could not read transactions: %s", exc)
            return self._transactions
        if not raw:
            logger.info("[LEDGER] No stored transactions.")
            return self.dispatch(Replace(()), persist=False)

        try:
            items = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("[LEDGER] Stored transactions are not valid JSON: %s", exc)
            return self._transactions
        if not isinstance(items, list):
            logger.error("[LEDGER] Stored transactions are not a list; ignoring them.")
            return self._transactions

        loaded: list[Transaction] = []
        for index, item in enumerate(items):
            try:
                loaded.append(Transaction.model_validate(item))
            except pydantic.ValidationError as exc:
                logger.warning("[LEDGER] Skipping stored transaction #%s: %s", index, exc.errors()[0]["msg"])
        logger.info("[LEDGER] Loaded %d transactions.", len(loaded))
        return self.dispatch(Replace(tuple(loaded)), persist=False)

    def add(self, transaction: Transaction) -> Transaction:
        self.dispatch(Add(transaction))
        return self._last_added

    def update(self, transaction: Transaction) -> Snapshot:
        return self.dispatch(Update(transaction))

    def delete(self, transaction_id: str) -> Snapshot:
        return self.dispatch(Delete(transaction_id))

    def replace(self, transactions: Iterable[Transaction]) -> Snapshot:
        return self.dispatch(Replace(tuple(transactions)))

    def update_batch(self, transactions: Iterable[Transaction]) -> Snapshot:
        return self.dispatch(UpdateBatch(tuple(transactions)))

    def reset(self) -> None:
        """Forget every transaction without touching the store."""
        self.dispatch(Replace(()), persist=False)

    def dispatch(self, command: Command, *, persist: bool = True) -> Snapshot:
        if isinstance(command, Add):
            updated, action = self._apply_add(command.transaction), "add"
        elif isinstance(command, Update):
            updated, action = self._apply_updates((command.transaction,)), "update"
        elif isinstance(command, Delete):
            updated, action = self._apply_delete(command.transaction_id), "delete"
        elif isinstance(command, Replace):
            updated, action = self._apply_replace(command.transactions), "replace"
        elif isinstance(command, UpdateBatch):
            updated, action = self._apply_updates(command.transactions), "update_batch"
        else:
            raise TypeError(f"Unknown ledger command: {command!r}")

        if updated is None:
            return self._transactions

        self._transactions = updated
        self.revision += 1
        logger.debug("[LEDGER] %s applied (revision %s, %d entries).", action, self.revision, len(updated))
        if persist:
            self._persist()
        self.notifier.publish(LedgerChanged(action=action, snapshot=updated, revision=self.revision))
        return updated

    def _canonical_category(self, category: str) -> str:
        name = category.strip()
        if not name:
            return name
        # Spelling of the first matching category in the current snapshot
        key = name.lower()
        for existing in self._transactions:
            if existing.category.lower() == key:
                return existing.category
        return name

    def _normalize(self, transaction: Transaction) -> Transaction:
        changes: dict[str, object] = {}
        category = self._canonical_category(transaction.category)
        if category != transaction.category:
            changes["category"] = category
        if transaction.type is None:
            changes["type"] = TransactionType.EXPENSE if transaction.amount < 0 else TransactionType.INCOME
        return transaction.model_copy(update=changes) if changes else transaction

    def _apply_add(self, transaction: Transaction) -> Snapshot:
        normalized = self._normalize(transaction)
        if normalized.id is None or self.get(normalized.id) is not None:
            if normalized.id is not None:
                logger.warning("[LEDGER] Duplicate id %s on add; assigning a new one.", normalized.id)
            normalized = normalized.model_copy(update={"id": self._ids()})
        else:
            self._ids.observe(normalized.id)
        self._last_added = normalized
        return sort_transactions((*self._transactions, normalized))

    def _apply_updates(self, transactions: tuple[Transaction, ...]) -> Snapshot | None:
        positions = {tx.id: index for index, tx in enumerate(self._transactions)}
        current = list(self._transactions)
        changed = False
        for transaction in transactions:
            index = positions.get(transaction.id)
            if index is None:
                logger.warning("[LEDGER] Update for unknown transaction id %s ignored.", transaction.id)
                continue
            normalized = self._normalize(transaction)
            if normalized != current[index]:
                current[index] = normalized
                changed = True
        if not changed:
            return None
        return sort_transactions(current)

    def _apply_delete(self, transaction_id: str) -> Snapshot | None:
        remaining = tuple(tx for tx in self._transactions if tx.id != transaction_id)
        if len(remaining) == len(self._transactions):
            logger.warning("[LEDGER] Delete for unknown transaction id %s ignored.", transaction_id)
            return None
        return remaining

    def _apply_replace(self, transactions: tuple[Transaction, ...]) -> Snapshot:
        # Normalize against the snapshot being replaced, not the incoming batch
        normalized = [self._normalize(tx) for tx in transactions]
        for transaction in normalized:
            self._ids.observe(transaction.id)
        with_ids = [tx if tx.id else tx.model_copy(update={"id": self._ids()}) for tx in normalized]
        return sort_transactions(with_ids)

    def _persist(self) -> None:
        payload = json.dumps([tx.to_storage() for tx in self._transactions], ensure_ascii=False)
        try:
            self.store.set(TRANSACTIONS_KEY, payload)
        except PersistenceError as exc:
            logger.error("[LEDGER] Persist failed, continuing in memory: %s", exc)
