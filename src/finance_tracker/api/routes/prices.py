from typing import Annotated

from fastapi import APIRouter, Depends

from finance_tracker.api.dependencies import get_tracker
from finance_tracker.api.schemas import PriceStatus, RefreshResult
from finance_tracker.domain.timefmt import format_age
from finance_tracker.logger import get_logger
from finance_tracker.tracker import FinanceTracker

logger = get_logger(__name__)

router = APIRouter(prefix="/api/gold")


@router.get("/categories")
async def get_gold_categories(
    tracker: Annotated[FinanceTracker, Depends(get_tracker)],
) -> list[str]:
    return tracker.get_gold_categories()


@router.get("/prices", response_model=PriceStatus)
async def get_prices(
    tracker: Annotated[FinanceTracker, Depends(get_tracker)],
) -> PriceStatus:
    snapshot = tracker.get_price_snapshot()
    return PriceStatus(
        prices=tracker.get_current_prices(),
        last_update=snapshot.last_update if snapshot else None,
        age=format_age(snapshot.last_update, tracker.prices.clock()) if snapshot else None,
        stale=tracker.prices.is_stale(snapshot),
        scheduler=tracker.scheduler.get_status(),
    )


@router.post("/refresh", response_model=RefreshResult)
async def refresh_prices(
    tracker: Annotated[FinanceTracker, Depends(get_tracker)],
) -> RefreshResult:
    merged = await tracker.force_refresh_prices()
    if merged is None:
        return RefreshResult(status="cancelled")

    status = tracker.scheduler.get_status()
    last_error = status.get("last_error")
    if last_error:
        # Soft signal: cached or default prices are still served
        logger.info("[API] Price refresh unavailable: %s", last_error)
    return RefreshResult(
        status="unavailable" if last_error else "refreshed",
        prices=merged,
        fresh=status.get("fresh", 0),
        last_error=last_error,
    )
