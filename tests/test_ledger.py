import json
from datetime import date

import pytest

from finance_tracker.errors import PersistenceError
from finance_tracker.models import Transaction, TransactionType
from finance_tracker.services.events import ChangeEvent, ChangeNotifier, LedgerChanged
from finance_tracker.services.ledger import (
    TRANSACTIONS_KEY,
    Add,
    Delete,
    IdGenerator,
    LedgerStore,
    Replace,
    Update,
    UpdateBatch,
)
from finance_tracker.storage.memory import InMemoryStore


def _tx(**overrides: object) -> Transaction:
    data: dict[str, object] = {
        "description": "Lunch",
        "amount": -12.5,
        "date": date(2024, 3, 1),
        "category": "Food",
        "type": "expense",
    }
    data.update(overrides)
    return Transaction.model_validate(data)


def _ledger(store: InMemoryStore | None = None, notifier: ChangeNotifier | None = None) -> LedgerStore:
    return LedgerStore(store or InMemoryStore(), notifier, id_factory=IdGenerator(clock=lambda: 1700000000.0))


class FailingStore(InMemoryStore):
    def set(self, key: str, value: str) -> None:
        raise PersistenceError("read-only")


def test_id_generator_is_strictly_increasing() -> None:
    ids = IdGenerator(clock=lambda: 1.0)
    first, second = ids(), ids()
    assert int(second) > int(first)

    ids.observe("99999999")
    assert int(ids()) == 100000000
    ids.observe("not-a-number")


def test_add_assigns_id_and_persists() -> None:
    store = InMemoryStore()
    ledger = _ledger(store)

    added = ledger.add(_tx())

    assert added.id == "1700000000000"
    assert ledger.transactions == (added,)
    stored = json.loads(store.get(TRANSACTIONS_KEY))
    assert stored[0]["id"] == added.id
    assert stored[0]["isRecurring"] is False
    assert stored[0]["date"] == "2024-03-01"


def test_add_replaces_duplicate_id() -> None:
    ledger = _ledger()
    first = ledger.add(_tx(id="5"))
    second = ledger.add(_tx(id="5", description="Dinner"))

    assert first.id == "5"
    assert second.id != "5"
    assert len({tx.id for tx in ledger.transactions}) == 2


def test_ordering_newest_first_then_descending_id() -> None:
    ledger = _ledger()
    ledger.replace([
        _tx(id="1", date=date(2024, 1, 1)),
        _tx(id="3", date=date(2024, 2, 1)),
        _tx(id="2", date=date(2024, 2, 1)),
        _tx(id="10", date=date(2024, 2, 1)),
    ])

    assert [tx.id for tx in ledger.transactions] == ["10", "3", "2", "1"]


def test_categories_keep_first_seen_casing() -> None:
    ledger = _ledger()
    ledger.add(_tx(category="Food"))
    later = ledger.add(_tx(category="  food "))

    assert later.category == "Food"
    assert len(ledger.transactions) == 2
    assert ledger.categories() == ["Food"]


def test_type_defaults_from_amount_sign() -> None:
    ledger = _ledger()
    expense = ledger.add(_tx(type=None, amount=-3))
    income = ledger.add(_tx(type=None, amount=100, category="Salary"))

    assert expense.type == TransactionType.EXPENSE
    assert income.type == TransactionType.INCOME


def test_update_replaces_in_place_and_resorts() -> None:
    ledger = _ledger()
    ledger.replace([_tx(id="1", date=date(2024, 1, 1)), _tx(id="2", date=date(2024, 1, 2))])

    ledger.update(_tx(id="1", date=date(2024, 1, 5), description="Moved"))

    assert [tx.id for tx in ledger.transactions] == ["1", "2"]
    assert ledger.get("1").description == "Moved"


def test_unknown_update_and_delete_are_noops() -> None:
    notifier = ChangeNotifier()
    events: list[ChangeEvent] = []
    ledger = _ledger(notifier=notifier)
    ledger.add(_tx(id="1"))
    notifier.subscribe(events.append)
    before = ledger.transactions
    revision = ledger.revision

    ledger.update(_tx(id="missing"))
    ledger.delete("missing")

    assert ledger.transactions is before
    assert ledger.revision == revision
    assert events == []


def test_identical_update_does_not_notify() -> None:
    notifier = ChangeNotifier()
    events: list[ChangeEvent] = []
    ledger = _ledger(notifier=notifier)
    added = ledger.add(_tx(id="1"))
    notifier.subscribe(events.append)

    ledger.update(added)

    assert events == []


def test_delete_removes_transaction() -> None:
    store = InMemoryStore()
    ledger = _ledger(store)
    ledger.replace([_tx(id="1"), _tx(id="2")])

    ledger.delete("1")

    assert [tx.id for tx in ledger.transactions] == ["2"]
    assert [item["id"] for item in json.loads(store.get(TRANSACTIONS_KEY))] == ["2"]


def test_update_batch_is_one_mutation() -> None:
    notifier = ChangeNotifier()
    events: list[ChangeEvent] = []
    ledger = _ledger(notifier=notifier)
    ledger.replace([_tx(id="1"), _tx(id="2")])
    notifier.subscribe(events.append)

    ledger.update_batch([_tx(id="1", amount=-1), _tx(id="2", amount=-2), _tx(id="3")])

    assert len(events) == 1
    assert isinstance(events[0], LedgerChanged)
    assert events[0].action == "update_batch"
    assert {tx.id: tx.amount for tx in ledger.transactions} == {"1": -1, "2": -2}


def test_load_round_trips_and_skips_invalid_entries() -> None:
    store = InMemoryStore()
    ledger = _ledger(store)
    ledger.replace([_tx(id="1"), _tx(id="2", date=date(2024, 3, 2))])

    raw = json.loads(store.get(TRANSACTIONS_KEY))
    raw.append({"description": "broken"})
    store.set(TRANSACTIONS_KEY, json.dumps(raw))

    reloaded = _ledger(store)
    reloaded.load()

    assert reloaded.transactions == ledger.transactions


def test_load_handles_legacy_shapes() -> None:
    store = InMemoryStore({
        TRANSACTIONS_KEY: json.dumps([
            {
                "id": 17,
                "description": "Rent",
                "amount": -800,
                "date": "2024-02-01T00:00:00.000Z",
                "category": "Bills",
                "isRecurring": 1,
            }
        ])
    })
    ledger = _ledger(store)

    ledger.load()

    loaded = ledger.get("17")
    assert loaded is not None
    assert loaded.date == date(2024, 2, 1)
    assert loaded.is_recurring is True
    assert loaded.type == TransactionType.EXPENSE


@pytest.mark.parametrize("raw", ["{oops", json.dumps({"not": "a list"})])
def test_load_with_unreadable_data_keeps_ledger_empty(raw: str) -> None:
    ledger = _ledger(InMemoryStore({TRANSACTIONS_KEY: raw}))

    assert ledger.load() == ()


def test_persist_failure_keeps_memory_state() -> None:
    ledger = _ledger(FailingStore())

    added = ledger.add(_tx())

    assert ledger.transactions == (added,)


def test_dispatch_rejects_unknown_command() -> None:
    with pytest.raises(TypeError):
        _ledger().dispatch("nope")  # type: ignore[arg-type]


def test_commands_dispatch_directly() -> None:
    ledger = _ledger()
    ledger.dispatch(Replace((_tx(id="1"),)))
    ledger.dispatch(Add(_tx(id="2")))
    ledger.dispatch(Update(_tx(id="2", amount=-99)))
    ledger.dispatch(UpdateBatch((_tx(id="1", amount=-1),)))
    ledger.dispatch(Delete("1"))

    assert [(tx.id, tx.amount) for tx in ledger.transactions] == [("2", -99)]
    assert ledger.revision == 5


def test_casing_comes_from_current_transactions() -> None:
    ledger = _ledger()
    first = ledger.add(_tx(category="Food"))
    ledger.delete(first.id)

    again = ledger.add(_tx(category="food"))

    assert again.category == "food"
    assert ledger.categories() == ["food"]


def test_replace_drops_casing_of_removed_transactions() -> None:
    ledger = _ledger()
    ledger.replace([_tx(id="1", category="Food")])
    ledger.replace([_tx(id="2", category="Bills")])

    added = ledger.add(_tx(category="FOOD"))

    assert added.category == "FOOD"
