import asyncio
import os
from typing import Any

import httpx

from finance_tracker.core import settings
from finance_tracker.domain.prices import GOLD_CATEGORY_CODES, is_valid_price, parse_localized_decimal
from finance_tracker.errors import FetchFailed
from finance_tracker.logger import get_logger

logger = get_logger(__name__)

# Buying price field in the vendor payload
PRICE_FIELD = "alis"


def parse_price_records(payload: Any) -> dict[str, float]:
    """Map vendor records to ``{category: price}``, skipping unknown codes and bad prices."""
    if not isinstance(payload, list):
        raise FetchFailed(f"Expected a JSON array, got {type(payload).__name__}")

    prices: dict[str, float] = {}
    for item in payload:
        if not isinstance(item, dict):
            continue
        code = item.get("name")
        if not isinstance(code, str):
            continue
        category = GOLD_CATEGORY_CODES.get(code)
        raw_price = item.get(PRICE_FIELD)
        if not category or raw_price is None:
            continue
        try:
            price = parse_localized_decimal(raw_price)
        except ValueError:
            logger.debug("[PRICES] Unparseable price for %s: %r", code, raw_price)
            continue
        if is_valid_price(price):
            prices[category] = price
    return prices


class GoldPriceClient:
    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ):
        self._client = client
        self._client_lock = asyncio.Lock()
        self.refresh(url=url, api_key=api_key, timeout=timeout)

    def refresh(
        self,
        url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.url = url or os.getenv("GOLD_API_URL") or settings.DEFAULT_GOLD_API_URL
        self.api_key = api_key if api_key is not None else os.getenv("GOLD_API_KEY")
        if timeout is None:
            timeout = settings.get_env_float(
                "GOLD_API_TIMEOUT",
                settings.DEFAULT_GOLD_API_TIMEOUT,
                min_value=0.1,
            )
        self.timeout = timeout
        self.headers = {"Accept": "application/json"}
        if self.api_key:
            self.headers["X-API-KEY"] = self.api_key
        else:
            logger.warning("[PRICES] GOLD_API_KEY not set; requests will be sent without it.")

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _get_client(self) -> httpx.AsyncClient:
        client = self._client
        if client is not None and not client.is_closed:
            return client

        async with self._client_lock:
            client = self._client
            if client is None or client.is_closed:
                client = httpx.AsyncClient()
                self._client = client
            return client

    async def fetch_prices(self) -> dict[str, float]:
        """
        Fetch current gold prices once.

        Returns a non-empty ``{category: price}`` mapping. Every failure mode
        (timeout, bad status, transport error, malformed or empty body) is
        raised as FetchFailed.
        """
        client = await self._get_client()
        try:
            response = await client.get(self.url, headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as exc:
            raise FetchFailed(f"Price request timed out after {self.timeout:.1f}s") from exc
        except httpx.HTTPStatusError as exc:
            raise FetchFailed(f"Price source answered HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise FetchFailed(f"Price source unreachable: {exc}") from exc
        except ValueError as exc:
            raise FetchFailed("Price source returned a malformed body") from exc

        try:
            prices = parse_price_records(payload)
        except (TypeError, ValueError, AttributeError) as exc:
            raise FetchFailed(f"Price source returned an unexpected shape: {exc}") from exc
        if not prices:
            raise FetchFailed("Price source returned no usable gold prices")

        logger.info("[PRICES] Fetched %d gold categories from %s.", len(prices), self.url)
        return prices
