import asyncio
import contextlib
from collections.abc import Callable
from time import perf_counter
from typing import Any

from finance_tracker.core import settings
from finance_tracker.domain.timefmt import format_duration
from finance_tracker.errors import FetchFailed
from finance_tracker.integration.gold_api import GoldPriceClient
from finance_tracker.logger import get_logger
from finance_tracker.services.price_cache import PriceCache

logger = get_logger(__name__)

RefreshCallback = Callable[[dict[str, float]], Any]


class PriceRefreshScheduler:
    """
    Keeps the price cache warm.

    ``start`` refreshes immediately only when the cached snapshot is stale,
    then loops forever: sleep one interval, fetch, merge. ``stop`` cancels the
    loop; a refresh that completes after ``stop`` does not merge.
    """

    def __init__(
        self,
        client: GoldPriceClient,
        price_cache: PriceCache,
        *,
        interval: float | None = None,
        on_refreshed: RefreshCallback | None = None,
    ) -> None:
        self.client = client
        self.price_cache = price_cache
        self.interval = interval if interval is not None else settings.get_refresh_interval()
        self.on_refreshed = on_refreshed
        self._task: asyncio.Task[None] | None = None
        # Bumped by stop(); refreshes started under an older generation are dropped
        self._generation = 0
        self.status: dict[str, Any] = {"stage": "idle", "active": False}

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def get_status(self) -> dict[str, Any]:
        status = dict(self.status)
        status["active"] = self.active
        status["interval_seconds"] = self.interval
        return status

    async def start(self) -> None:
        if self.active:
            logger.debug("[SCHEDULER] Already running.")
            return

        generation = self._generation
        snapshot = self.price_cache.get()
        if self.price_cache.is_stale(snapshot):
            logger.info("[SCHEDULER] Cached gold prices are stale; refreshing now.")
            await self.refresh_now()
        else:
            logger.info("[SCHEDULER] Cached gold prices are fresh; skipping the startup refresh.")

        if generation != self._generation:
            # stop() ran while the startup refresh was in flight
            return
        self._task = asyncio.create_task(self._run(), name="gold-price-refresh")
        logger.info("[SCHEDULER] Refreshing gold prices every %s.", format_duration(self.interval))

    async def stop(self) -> None:
        self._generation += 1
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        self.status["stage"] = "stopped"
        logger.info("[SCHEDULER] Gold price refresh stopped.")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.refresh_now()
            except Exception:
                # Keep the timer alive; the next tick retries
                logger.exception("[SCHEDULER] Scheduled refresh crashed.")

    async def refresh_now(self) -> dict[str, float] | None:
        """
        Run one fetch -> merge cycle.

        Returns the merged prices, or None when the scheduler was stopped
        before the fetch completed.
        """
        generation = self._generation
        started = perf_counter()
        self.status.update({"stage": "fetching"})

        error: str | None = None
        try:
            fetched = await self.client.fetch_prices()
        except FetchFailed as exc:
            logger.warning("[SCHEDULER] Price fetch failed (%s); falling back to cached prices.", exc)
            fetched = {}
            error = str(exc)

        if generation != self._generation:
            logger.info("[SCHEDULER] Scheduler stopped during fetch; discarding result.")
            self.status["stage"] = "stopped"
            return None

        merged = self.price_cache.merge(fetched)
        elapsed = perf_counter() - started
        self.status.clear()
        self.status.update({
            "stage": "idle",
            "fresh": len(fetched),
            "categories": len(merged),
            "last_error": error,
            "last_duration": format_duration(elapsed),
        })
        logger.info(
            "[SCHEDULER] Refresh finished in %s (%d fresh of %d).",
            format_duration(elapsed),
            len(fetched),
            len(merged),
        )

        if self.on_refreshed is not None:
            self.on_refreshed(merged)
        return merged
