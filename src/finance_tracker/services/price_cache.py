import json
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta, timezone

from finance_tracker.core import settings
from finance_tracker.domain.prices import (
    DEFAULT_GOLD_PRICES,
    GOLD_CATEGORIES,
    PREFERRED_CATEGORY_ORDER,
    is_valid_price,
)
from finance_tracker.errors import PersistenceError
from finance_tracker.logger import get_logger
from finance_tracker.models import PriceSnapshot
from finance_tracker.services.events import ChangeNotifier, PricesChanged
from finance_tracker.storage.base import KeyValueStore

logger = get_logger(__name__)

PRICES_KEY = "@gold_prices"
LAST_UPDATE_KEY = "@last_gold_update"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(raw: str | None) -> datetime | None:
    if not raw:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        value = raw
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class PriceCache:
    """
    Last known gold prices with a three-tier fallback.

    Reads go through the key/value store; the most recent merge is also kept
    in memory so a failed write never hides it.
    """

    def __init__(
        self,
        store: KeyValueStore,
        notifier: ChangeNotifier | None = None,
        clock: Callable[[], datetime] = utc_now,
        stale_after: float = settings.PRICE_STALE_AFTER_SECONDS,
    ):
        self.store = store
        self.notifier = notifier or ChangeNotifier()
        self.clock = clock
        self.stale_after = timedelta(seconds=stale_after)
        self._snapshot: PriceSnapshot | None = None

    def get(self) -> PriceSnapshot | None:
        stored = self._read_stored()
        if self._snapshot is not None and (
            stored is None or stored.last_update < self._snapshot.last_update
        ):
            return self._snapshot
        return stored

    def _read_stored(self) -> PriceSnapshot | None:
        try:
            raw_prices = self.store.get(PRICES_KEY)
            raw_update = self.store.get(LAST_UPDATE_KEY)
        except PersistenceError as exc:
            logger.error("[PRICES] Could not read cached prices: %s", exc)
            return None
        if not raw_prices:
            return None

        try:
            data = json.loads(raw_prices)
        except json.JSONDecodeError:
            logger.warning("[PRICES] Cached prices are not valid JSON; ignoring them.")
            return None
        if not isinstance(data, dict):
            return None

        prices = {str(name): float(price) for name, price in data.items() if is_valid_price(price)}
        if not prices:
            return None
        # A snapshot without a timestamp is treated as infinitely old
        last_update = _parse_timestamp(raw_update) or datetime.min.replace(tzinfo=timezone.utc)
        return PriceSnapshot(prices=prices, last_update=last_update)

    def is_stale(self, snapshot: PriceSnapshot | None) -> bool:
        if snapshot is None:
            return True
        return self.clock() - snapshot.last_update > self.stale_after

    def merge(self, fetched: Mapping[str, float]) -> dict[str, float]:
        """
        Combine fetched prices with the previous snapshot and the defaults.

        Every expected category ends up with a price. ``lastUpdate`` is set to
        now even when nothing fresh arrived, so staleness measures the last
        attempt.
        """
        previous = self.get()
        prior = previous.prices if previous else {}

        merged: dict[str, float] = {}
        fresh = cached = defaulted = 0
        for category in GOLD_CATEGORIES:
            price = fetched.get(category)
            if is_valid_price(price):
                merged[category] = float(price)
                fresh += 1
            elif is_valid_price(prior.get(category)):
                merged[category] = prior[category]
                cached += 1
            else:
                merged[category] = DEFAULT_GOLD_PRICES[category]
                defaulted += 1

        snapshot = PriceSnapshot(prices=merged, last_update=self.clock())
        self._snapshot = snapshot
        self._save(snapshot)
        logger.info(
            "[PRICES] Merged prices: %d fresh, %d cached, %d default.",
            fresh,
            cached,
            defaulted,
        )
        self.notifier.publish(PricesChanged(snapshot=snapshot, fresh_count=fresh))
        return dict(merged)

    def _save(self, snapshot: PriceSnapshot) -> None:
        try:
            self.store.set(PRICES_KEY, json.dumps(snapshot.prices, ensure_ascii=False))
            self.store.set(LAST_UPDATE_KEY, json.dumps(snapshot.last_update.isoformat()))
        except PersistenceError as exc:
            logger.error("[PRICES] Could not persist prices, keeping them in memory: %s", exc)

    def forget(self) -> None:
        self._snapshot = None

    def current_prices(self) -> dict[str, float]:
        snapshot = self.get()
        if snapshot is None:
            return dict(DEFAULT_GOLD_PRICES)
        return dict(snapshot.prices)

    def categories(self) -> list[str]:
        snapshot = self.get()
        if snapshot is None or not snapshot.prices:
            return list(GOLD_CATEGORIES)
        known = list(snapshot.prices)
        preferred = [name for name in PREFERRED_CATEGORY_ORDER if name in snapshot.prices]
        return preferred + [name for name in known if name not in preferred]
