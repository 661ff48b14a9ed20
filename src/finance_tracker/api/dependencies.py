from fastapi import HTTPException, Request

from finance_tracker.tracker import FinanceTracker


def get_tracker(request: Request) -> FinanceTracker:
    tracker = getattr(request.app.state, "tracker", None)
    if not tracker:
        raise HTTPException(status_code=500, detail="Tracker not initialized")
    return tracker
