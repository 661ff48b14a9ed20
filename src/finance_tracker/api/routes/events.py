import asyncio
import json
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from finance_tracker.api.dependencies import get_tracker
from finance_tracker.core import settings
from finance_tracker.services.events import ChangeEvent, describe_event
from finance_tracker.tracker import FinanceTracker

router = APIRouter(prefix="/api")

KEEPALIVE_SECONDS = 15.0


@router.get("/events")
async def stream_events(
    request: Request,
    tracker: Annotated[FinanceTracker, Depends(get_tracker)],
) -> StreamingResponse:
    queue: asyncio.Queue[dict] = asyncio.Queue()

    def enqueue(event: ChangeEvent) -> None:
        queue.put_nowait(describe_event(event))

    unsubscribe = tracker.subscribe(enqueue)

    async def generate() -> AsyncGenerator[str, None]:
        try:
            yield "data: {\"event\": \"connected\"}\n\n"
            while not await request.is_disconnected():
                try:
                    payload = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield f"data: {json.dumps(payload)}\n\n"
        finally:
            unsubscribe()

    return StreamingResponse(generate(), media_type="text/event-stream", headers=settings.SSE_HEADERS)
