from datetime import datetime, timezone
from unittest.mock import MagicMock

from finance_tracker.models import PriceSnapshot
from finance_tracker.services.events import (
    ChangeNotifier,
    LedgerChanged,
    PricesChanged,
    describe_event,
)


def test_publish_reaches_every_subscriber_despite_failures() -> None:
    notifier = ChangeNotifier()
    broken = MagicMock(side_effect=RuntimeError("boom"))
    healthy = MagicMock()
    notifier.subscribe(broken)
    notifier.subscribe(healthy)
    event = LedgerChanged(action="add", snapshot=(), revision=1)

    notifier.publish(event)

    broken.assert_called_once_with(event)
    healthy.assert_called_once_with(event)


def test_unsubscribe_is_idempotent() -> None:
    notifier = ChangeNotifier()
    unsubscribe = notifier.subscribe(MagicMock())
    assert notifier.subscriber_count == 1

    unsubscribe()
    unsubscribe()

    assert notifier.subscriber_count == 0


def test_describe_event() -> None:
    stamp = datetime(2024, 3, 1, tzinfo=timezone.utc)
    prices = PricesChanged(snapshot=PriceSnapshot(prices={"Gram Altın": 1.0}, last_update=stamp), fresh_count=1)

    assert describe_event(LedgerChanged(action="delete", snapshot=(), revision=3)) == {
        "event": "ledger",
        "action": "delete",
        "revision": 3,
        "count": 0,
    }
    assert describe_event(prices) == {
        "event": "prices",
        "fresh": 1,
        "categories": 1,
        "lastUpdate": "2024-03-01T00:00:00+00:00",
    }
