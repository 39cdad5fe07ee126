"""Ledger and reference store operations backing the portfolio API."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from yieldly.holdings import build_holdings_summary
from yieldly.models import (
    DividendFrequency,
    HoldingSummary,
    InvalidTransactionError,
    StockReference,
    Transaction,
    TransactionType,
)

from .models import Portfolio, StockInfo, TransactionRecord

logger = logging.getLogger(__name__)

STOCK_INFO_FIELDS = ("market_price", "dividend_frequency", "dividend_per_share", "last_dividend_date")


class LedgerError(ValueError):
    """Base class for store-level failures surfaced to API callers."""


class NotFoundError(LedgerError):
    """Raised when a portfolio or transaction id does not exist."""


class DuplicatePortfolioError(LedgerError):
    """Raised when a portfolio code is already taken."""


# Portfolios


async def list_portfolios(session: AsyncSession) -> list[Portfolio]:
    result = await session.execute(select(Portfolio).order_by(Portfolio.display_order, Portfolio.name))
    return list(result.scalars().all())


async def get_portfolio(session: AsyncSession, portfolio_id: int) -> Portfolio:
    portfolio = await session.get(Portfolio, portfolio_id)
    if portfolio is None:
        raise NotFoundError("Portfolio not found")
    return portfolio


async def get_portfolio_by_code(session: AsyncSession, code: str) -> Portfolio | None:
    result = await session.execute(select(Portfolio).where(Portfolio.code == code.strip().upper()))
    return result.scalars().first()


async def create_portfolio(session: AsyncSession, name: str, code: str) -> Portfolio:
    name = (name or "").strip()
    normalized_code = (code or "").strip().upper()
    if not name or not normalized_code:
        raise LedgerError("Name and code are required")
    if await get_portfolio_by_code(session, normalized_code) is not None:
        raise DuplicatePortfolioError("Portfolio code already exists")

    portfolio = Portfolio(name=name, code=normalized_code)
    session.add(portfolio)
    await session.commit()
    await session.refresh(portfolio)
    logger.info("Created portfolio %s (%s)", portfolio.id, portfolio.code)
    return portfolio


async def delete_portfolio(session: AsyncSession, portfolio_id: int) -> None:
    portfolio = await get_portfolio(session, portfolio_id)
    await session.execute(delete(TransactionRecord).where(TransactionRecord.portfolio_id == portfolio_id))
    await session.execute(delete(StockInfo).where(StockInfo.portfolio_id == portfolio_id))
    await session.delete(portfolio)
    await session.commit()
    logger.info("Deleted portfolio %s", portfolio_id)


async def set_portfolio_order(session: AsyncSession, portfolio_id: int, display_order: int) -> Portfolio:
    portfolio = await get_portfolio(session, portfolio_id)
    portfolio.display_order = display_order
    await session.commit()
    await session.refresh(portfolio)
    return portfolio


# Transactions


async def list_transactions(session: AsyncSession, portfolio_id: int) -> list[TransactionRecord]:
    result = await session.execute(
        select(TransactionRecord)
        .where(TransactionRecord.portfolio_id == portfolio_id)
        .order_by(TransactionRecord.date.desc(), TransactionRecord.created_at.desc(), TransactionRecord.id.desc())
    )
    return list(result.scalars().all())


async def record_transaction(
    session: AsyncSession,
    portfolio_id: int,
    ticker: str,
    type: str | TransactionType,
    date: date,
    *,
    quantity: float | None = None,
    price: float | None = None,
    total: float | None = None,
    commit: bool = True,
) -> TransactionRecord:
    """Append a transaction to the ledger.

    ``quantity`` and ``price`` default to 0 and ``total`` to
    ``quantity * price``, so dividend rows only need a total.
    """

    tx_type = TransactionType.parse(type)
    normalized_ticker = (ticker or "").strip().upper()
    if not normalized_ticker:
        raise InvalidTransactionError("Ticker is required")
    if date is None:
        raise InvalidTransactionError("Date is required")

    final_quantity = quantity if quantity is not None else 0.0
    final_price = price if price is not None else 0.0
    final_total = total if total is not None else final_quantity * final_price
    if final_quantity < 0 or final_price < 0:
        raise InvalidTransactionError("Quantity and price must not be negative")

    await get_portfolio(session, portfolio_id)
    record = TransactionRecord(
        portfolio_id=portfolio_id,
        ticker=normalized_ticker,
        type=tx_type.value,
        quantity=final_quantity,
        price=final_price,
        total=final_total,
        date=date,
    )
    session.add(record)
    if commit:
        await session.commit()
        await session.refresh(record)
    else:
        await session.flush()
    return record


async def delete_transaction(session: AsyncSession, transaction_id: int) -> None:
    record = await session.get(TransactionRecord, transaction_id)
    if record is None:
        raise NotFoundError("Transaction not found")
    await session.delete(record)
    await session.commit()


# Stock reference data


async def upsert_stock_reference(
    session: AsyncSession, portfolio_id: int, ticker: str, **fields: Any
) -> StockInfo:
    """Create or merge the reference row for ``(portfolio_id, ticker)``.

    Fields passed as ``None`` are left unchanged.
    """

    unknown = set(fields) - set(STOCK_INFO_FIELDS)
    if unknown:
        raise LedgerError(f"Unknown stock info fields: {', '.join(sorted(unknown))}")

    await get_portfolio(session, portfolio_id)
    normalized_ticker = ticker.strip().upper()
    result = await session.execute(
        select(StockInfo).where(StockInfo.portfolio_id == portfolio_id, StockInfo.ticker == normalized_ticker)
    )
    record = result.scalars().first()
    if record is None:
        record = StockInfo(portfolio_id=portfolio_id, ticker=normalized_ticker)
        session.add(record)

    for name, value in fields.items():
        if value is None:
            continue
        if name == "dividend_frequency":
            parsed = DividendFrequency.parse(value)
            value = parsed.value if parsed is not None else value
        setattr(record, name, value)

    await session.commit()
    await session.refresh(record)
    return record


async def list_stock_references(session: AsyncSession, portfolio_id: int) -> list[StockInfo]:
    result = await session.execute(select(StockInfo).where(StockInfo.portfolio_id == portfolio_id))
    return list(result.scalars().all())


# Holdings


def _to_transaction(record: TransactionRecord) -> Transaction:
    return Transaction(
        id=record.id,
        portfolio_id=record.portfolio_id,
        ticker=record.ticker,
        type=TransactionType.parse(record.type),
        quantity=record.quantity or 0.0,
        price=record.price or 0.0,
        total=record.total or 0.0,
        date=record.date,
    )


def _to_reference(record: StockInfo) -> StockReference:
    return StockReference(
        portfolio_id=record.portfolio_id,
        ticker=record.ticker,
        market_price=record.market_price,
        dividend_frequency=record.dividend_frequency,
        dividend_per_share=record.dividend_per_share,
        last_dividend_date=record.last_dividend_date,
    )


async def load_holdings(session: AsyncSession, portfolio_id: int) -> list[HoldingSummary]:
    """Recompute the holding summary from the current ledger contents."""

    await get_portfolio(session, portfolio_id)
    transactions = [_to_transaction(record) for record in await list_transactions(session, portfolio_id)]
    references = [_to_reference(record) for record in await list_stock_references(session, portfolio_id)]
    return build_holdings_summary(transactions, references)


__all__ = [
    "DuplicatePortfolioError",
    "LedgerError",
    "NotFoundError",
    "STOCK_INFO_FIELDS",
    "create_portfolio",
    "delete_portfolio",
    "delete_transaction",
    "get_portfolio",
    "get_portfolio_by_code",
    "list_portfolios",
    "list_stock_references",
    "list_transactions",
    "load_holdings",
    "record_transaction",
    "set_portfolio_order",
    "upsert_stock_reference",
]
