import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from finance_tracker.api.routes import events, investments, preferences, prices, transactions
from finance_tracker.core import settings
from finance_tracker.errors import ValidationError
from finance_tracker.logger import get_logger, setup_logging
from finance_tracker.storage.json_file import JsonFileStore
from finance_tracker.tracker import FinanceTracker

logger = get_logger(__name__)


def create_app(tracker: FinanceTracker | None = None) -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing services...")
        settings.log_environment()

        service = tracker or FinanceTracker(JsonFileStore(os.path.join(settings.DATA_DIR, settings.STORE_FILENAME)))
        service.load()
        await service.start()
        app.state.tracker = service

        logger.info("Services initialized.")
        yield
        logger.info("Service shutting down.")
        await service.aclose()

    app = FastAPI(title="Finance Tracker", lifespan=lifespan)

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        logger.info("[API] Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=422, content={"detail": exc.errors})

    app.include_router(transactions.router)
    app.include_router(investments.router)
    app.include_router(prices.router)
    app.include_router(preferences.router)
    app.include_router(events.router)

    return app


app = create_app()
