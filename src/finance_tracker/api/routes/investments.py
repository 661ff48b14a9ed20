from typing import Annotated

from fastapi import APIRouter, Depends

from finance_tracker.api.dependencies import get_tracker
from finance_tracker.api.schemas import InvestmentView
from finance_tracker.domain.aggregation import gain_loss_percentage
from finance_tracker.tracker import FinanceTracker

router = APIRouter(prefix="/api")


@router.get("/investments", response_model=list[InvestmentView])
async def list_investments(
    tracker: Annotated[FinanceTracker, Depends(get_tracker)],
) -> list[InvestmentView]:
    return [
        InvestmentView(
            **investment.model_dump(),
            gain_loss=tracker.calculate_gain_loss(investment),
            gain_loss_percentage=gain_loss_percentage(investment),
        )
        for investment in tracker.get_investments()
    ]
