from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from finance_tracker.api.dependencies import get_tracker
from finance_tracker.api.schemas import (
    CategoryRequest,
    CurrencyRequest,
    CustomRangeRequest,
    FilterRequest,
    PreferencesView,
)
from finance_tracker.domain.currency import get_available_currencies
from finance_tracker.tracker import FinanceTracker

router = APIRouter(prefix="/api")


def _view(tracker: FinanceTracker) -> PreferencesView:
    preferences = tracker.preferences
    return PreferencesView(
        active_filter=preferences.active_filter,
        custom_range=preferences.custom_range,
        currency=preferences.currency,
    )


@router.get("/preferences", response_model=PreferencesView)
async def get_preferences(
    tracker: Annotated[FinanceTracker, Depends(get_tracker)],
) -> PreferencesView:
    return _view(tracker)


@router.put("/preferences/filter", response_model=PreferencesView)
async def set_filter(
    req: FilterRequest,
    tracker: Annotated[FinanceTracker, Depends(get_tracker)],
) -> PreferencesView:
    tracker.preferences.set_filter(req.filter)
    return _view(tracker)


@router.put("/preferences/custom-range", response_model=PreferencesView)
async def set_custom_range(
    req: CustomRangeRequest,
    tracker: Annotated[FinanceTracker, Depends(get_tracker)],
) -> PreferencesView:
    tracker.preferences.set_custom_range(req.start_date, req.end_date)
    return _view(tracker)


@router.put("/preferences/currency", response_model=PreferencesView)
async def set_currency(
    req: CurrencyRequest,
    tracker: Annotated[FinanceTracker, Depends(get_tracker)],
) -> PreferencesView:
    tracker.preferences.set_currency(req.currency)
    return _view(tracker)


@router.get("/currencies")
async def list_currencies() -> list[dict[str, str]]:
    return get_available_currencies()


@router.get("/categories")
async def list_categories(
    tracker: Annotated[FinanceTracker, Depends(get_tracker)],
) -> dict[str, str]:
    catalog = tracker.categories
    return {name: catalog.color_for(name) for name in catalog.categories}


@router.post("/categories", status_code=201)
async def add_category(
    req: CategoryRequest,
    tracker: Annotated[FinanceTracker, Depends(get_tracker)],
) -> dict[str, str]:
    if not tracker.categories.add(req.name):
        raise HTTPException(status_code=409, detail="Category is blank or already exists")
    name = req.name.strip()
    return {"name": name, "color": tracker.categories.color_for(name)}


@router.put("/categories/{name}")
async def rename_category(
    name: str,
    req: CategoryRequest,
    tracker: Annotated[FinanceTracker, Depends(get_tracker)],
) -> dict[str, str]:
    if not tracker.categories.rename(name, req.name):
        raise HTTPException(status_code=409, detail="Category cannot be renamed")
    new_name = req.name.strip()
    return {"name": new_name, "color": tracker.categories.color_for(new_name)}


@router.delete("/categories/{name}")
async def remove_category(
    name: str,
    tracker: Annotated[FinanceTracker, Depends(get_tracker)],
) -> dict[str, str]:
    if not tracker.categories.remove(name):
        raise HTTPException(status_code=404, detail="Category not found")
    return {"status": "deleted"}
