from datetime import date as Date
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from finance_tracker.api.dependencies import get_tracker
from finance_tracker.logger import get_logger
from finance_tracker.models import CategoryShare, DateRange, FilterKind, Totals, Transaction
from finance_tracker.tracker import FinanceTracker

logger = get_logger(__name__)

router = APIRouter(prefix="/api")


def resolve_query(
    filter_kind: FilterKind | None,
    start_date: Date | None,
    end_date: Date | None,
) -> tuple[FilterKind | None, DateRange | None]:
    if start_date is None and end_date is None:
        return filter_kind, None
    # An explicit range implies the custom filter
    return filter_kind or FilterKind.CUSTOM, DateRange(start_date=start_date, end_date=end_date)


@router.get("/transactions", response_model=list[Transaction])
async def list_transactions(
    tracker: Annotated[FinanceTracker, Depends(get_tracker)],
    filter_kind: Annotated[FilterKind | None, Query(alias="filter")] = None,
    start_date: Annotated[Date | None, Query(alias="startDate")] = None,
    end_date: Annotated[Date | None, Query(alias="endDate")] = None,
) -> list[Transaction]:
    return tracker.get_filtered_transactions(*resolve_query(filter_kind, start_date, end_date))


@router.post("/transactions", response_model=Transaction, status_code=201)
async def create_transaction(
    payload: Annotated[dict[str, Any], Body()],
    tracker: Annotated[FinanceTracker, Depends(get_tracker)],
) -> Transaction:
    return tracker.add_transaction(payload)


@router.put("/transactions", response_model=list[Transaction])
async def replace_transactions(
    payload: Annotated[list[dict[str, Any]], Body()],
    tracker: Annotated[FinanceTracker, Depends(get_tracker)],
) -> list[Transaction]:
    logger.info("[API] Replacing ledger with %d transactions.", len(payload))
    return list(tracker.set_all_transactions(payload))


@router.put("/transactions/{transaction_id}", response_model=Transaction)
async def update_transaction(
    transaction_id: str,
    payload: Annotated[dict[str, Any], Body()],
    tracker: Annotated[FinanceTracker, Depends(get_tracker)],
) -> Transaction:
    updated = tracker.update_transaction({**payload, "id": transaction_id})
    if updated is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return updated


@router.delete("/transactions/{transaction_id}")
async def delete_transaction(
    transaction_id: str,
    tracker: Annotated[FinanceTracker, Depends(get_tracker)],
) -> dict[str, str]:
    if not tracker.delete_transaction(transaction_id):
        raise HTTPException(status_code=404, detail="Transaction not found")
    return {"status": "deleted"}


@router.get("/totals", response_model=Totals)
async def get_totals(
    tracker: Annotated[FinanceTracker, Depends(get_tracker)],
    filter_kind: Annotated[FilterKind | None, Query(alias="filter")] = None,
    start_date: Annotated[Date | None, Query(alias="startDate")] = None,
    end_date: Annotated[Date | None, Query(alias="endDate")] = None,
) -> Totals:
    return tracker.get_filtered_totals(*resolve_query(filter_kind, start_date, end_date))


@router.get("/expenses/breakdown", response_model=list[CategoryShare])
async def get_expense_breakdown(
    tracker: Annotated[FinanceTracker, Depends(get_tracker)],
    filter_kind: Annotated[FilterKind | None, Query(alias="filter")] = None,
    start_date: Annotated[Date | None, Query(alias="startDate")] = None,
    end_date: Annotated[Date | None, Query(alias="endDate")] = None,
) -> list[CategoryShare]:
    return tracker.get_expense_breakdown(*resolve_query(filter_kind, start_date, end_date))


@router.post("/reset")
async def reset_data(
    tracker: Annotated[FinanceTracker, Depends(get_tracker)],
) -> dict[str, str]:
    tracker.clear_all_data()
    logger.warning("[API] All stored data cleared.")
    return {"status": "cleared"}
