from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from finance_tracker.logger import get_logger
from finance_tracker.models import PriceSnapshot, Transaction

logger = get_logger(__name__)


@dataclass(frozen=True)
class LedgerChanged:
    action: str
    snapshot: tuple[Transaction, ...]
    revision: int


@dataclass(frozen=True)
class PricesChanged:
    snapshot: PriceSnapshot
    fresh_count: int


ChangeEvent = LedgerChanged | PricesChanged
Subscriber = Callable[[ChangeEvent], None]


def describe_event(event: ChangeEvent) -> dict[str, Any]:
    """JSON-friendly summary of an event for streaming to clients."""
    if isinstance(event, LedgerChanged):
        return {
            "event": "ledger",
            "action": event.action,
            "revision": event.revision,
            "count": len(event.snapshot),
        }
    return {
        "event": "prices",
        "fresh": event.fresh_count,
        "categories": len(event.snapshot.prices),
        "lastUpdate": event.snapshot.last_update.isoformat(),
    }


class ChangeNotifier:
    """Synchronous fan-out of ledger and price events to subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: ChangeEvent) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                # A broken consumer must not undo a committed mutation.
                logger.exception("[EVENTS] Subscriber %r failed on %s.", callback, type(event).__name__)
