"""Entrypoint for the Yieldly FastAPI application."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from yieldly.config import get_settings
from yieldly.core.logging import setup_logging
from yieldly.core.telemetry import setup_telemetry
from yieldly.quotes import AlphaVantageClient

from .database import Database
from .imports import get_import_router
from .portfolios import QuoteSource, get_portfolio_router
from .schemas import HealthResponse
from .transactions import get_transaction_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI, db: Database, quotes: QuoteSource):
    await db.create_all()
    yield
    if isinstance(quotes, AlphaVantageClient):
        await quotes.aclose()


def create_app(db: Database | None = None, quotes: QuoteSource | None = None) -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)
    database_instance = db or Database(settings.database_url)
    quote_source = quotes or AlphaVantageClient()

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        lifespan=lambda app: _lifespan(app, database_instance, quote_source),
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_router = APIRouter(prefix=settings.api_prefix)
    api_router.include_router(get_portfolio_router(database_instance, quote_source))
    api_router.include_router(get_transaction_router(database_instance))
    api_router.include_router(get_import_router(database_instance))
    app.include_router(api_router)

    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service="yieldly", database_url=database_instance.url)

    setup_telemetry(app, settings, database_instance.engine)
    logger.info("Yieldly configuration", extra={"settings": settings.dict_for_logging()})
    return app


app = create_app()


__all__ = ["app", "create_app"]
