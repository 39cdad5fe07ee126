"""Portfolio, holdings summary, stock info and price refresh endpoints."""

from __future__ import annotations

import logging
from typing import Awaitable, Protocol

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from yieldly.quotes import refresh_market_prices

from . import ledger
from .database import Database
from .schemas import (
    HoldingSchema,
    PortfolioCreateRequest,
    PortfolioOrderRequest,
    PortfolioSchema,
    RefreshPricesResponse,
    StockInfoSchema,
    StockInfoUpdateRequest,
    TransactionSchema,
)

logger = logging.getLogger(__name__)


class QuoteSource(Protocol):
    def global_quote(self, symbol: str) -> Awaitable[float]: ...


def _http_error(exc: ledger.LedgerError) -> HTTPException:
    if isinstance(exc, ledger.NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def get_portfolio_router(database: Database, quotes: QuoteSource) -> APIRouter:
    router = APIRouter(prefix="/portfolios", tags=["portfolios"])

    @router.get("", response_model=list[PortfolioSchema])
    async def list_portfolios(session: AsyncSession = Depends(database.get_session)) -> list[PortfolioSchema]:
        portfolios = await ledger.list_portfolios(session)
        return [PortfolioSchema.model_validate(item) for item in portfolios]

    @router.post("", response_model=PortfolioSchema, status_code=status.HTTP_201_CREATED)
    async def create_portfolio(
        payload: PortfolioCreateRequest, session: AsyncSession = Depends(database.get_session)
    ) -> PortfolioSchema:
        try:
            portfolio = await ledger.create_portfolio(session, payload.name, payload.code)
        except ledger.LedgerError as exc:
            raise _http_error(exc) from exc
        return PortfolioSchema.model_validate(portfolio)

    @router.delete("/{portfolio_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_portfolio(portfolio_id: int, session: AsyncSession = Depends(database.get_session)) -> Response:
        try:
            await ledger.delete_portfolio(session, portfolio_id)
        except ledger.LedgerError as exc:
            raise _http_error(exc) from exc
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.put("/{portfolio_id}/order", response_model=PortfolioSchema)
    async def update_order(
        portfolio_id: int,
        payload: PortfolioOrderRequest,
        session: AsyncSession = Depends(database.get_session),
    ) -> PortfolioSchema:
        try:
            portfolio = await ledger.set_portfolio_order(session, portfolio_id, payload.display_order)
        except ledger.LedgerError as exc:
            raise _http_error(exc) from exc
        return PortfolioSchema.model_validate(portfolio)

    @router.get("/{portfolio_id}/transactions", response_model=list[TransactionSchema])
    async def list_transactions(
        portfolio_id: int, session: AsyncSession = Depends(database.get_session)
    ) -> list[TransactionSchema]:
        try:
            await ledger.get_portfolio(session, portfolio_id)
        except ledger.LedgerError as exc:
            raise _http_error(exc) from exc
        records = await ledger.list_transactions(session, portfolio_id)
        return [TransactionSchema.model_validate(record) for record in records]

    @router.get("/{portfolio_id}/summary", response_model=list[HoldingSchema])
    async def get_summary(portfolio_id: int, session: AsyncSession = Depends(database.get_session)) -> list[HoldingSchema]:
        try:
            holdings = await ledger.load_holdings(session, portfolio_id)
        except ledger.LedgerError as exc:
            raise _http_error(exc) from exc
        return [HoldingSchema.from_summary(item) for item in holdings]

    @router.put("/{portfolio_id}/stocks/{ticker}", response_model=StockInfoSchema)
    async def upsert_stock_info(
        portfolio_id: int,
        ticker: str,
        payload: StockInfoUpdateRequest,
        session: AsyncSession = Depends(database.get_session),
    ) -> StockInfoSchema:
        try:
            record = await ledger.upsert_stock_reference(session, portfolio_id, ticker, **payload.model_dump())
        except ledger.LedgerError as exc:
            raise _http_error(exc) from exc
        return StockInfoSchema.model_validate(record)

    @router.post("/{portfolio_id}/refresh-prices", response_model=RefreshPricesResponse)
    async def refresh_prices(
        portfolio_id: int, session: AsyncSession = Depends(database.get_session)
    ) -> RefreshPricesResponse:
        try:
            holdings = await ledger.load_holdings(session, portfolio_id)
        except ledger.LedgerError as exc:
            raise _http_error(exc) from exc

        tickers = [item.ticker for item in holdings if item.shares > 0]
        result = await refresh_market_prices(tickers, quotes.global_quote)
        for ticker, price in result.updated.items():
            await ledger.upsert_stock_reference(session, portfolio_id, ticker, market_price=price)
        logger.info("Refreshed prices for portfolio %s: %s", portfolio_id, result.message)
        return RefreshPricesResponse(message=result.message, updated=result.updated, errors=result.errors)

    return router


__all__ = ["QuoteSource", "get_portfolio_router"]
