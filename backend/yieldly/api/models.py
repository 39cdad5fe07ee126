"""ORM models for the Yieldly ledger and reference store."""

from __future__ import annotations

import datetime as dt
from typing import Optional

from sqlalchemy import CheckConstraint, Date, DateTime, Enum, Float, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from yieldly.models import TransactionType

from .database import Base

TRANSACTION_TYPES = tuple(member.value for member in TransactionType)


class Portfolio(Base):
    __tablename__ = "portfolios"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    code: Mapped[str] = mapped_column(String(32), unique=True, index=True)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=dt.datetime.utcnow)


class TransactionRecord(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_portfolio_ticker", "portfolio_id", "ticker"),
        CheckConstraint("quantity >= 0 AND price >= 0", name="ck_transactions_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    portfolio_id: Mapped[int] = mapped_column(ForeignKey("portfolios.id", ondelete="CASCADE"))
    ticker: Mapped[str] = mapped_column(String(20))
    type: Mapped[str] = mapped_column(Enum(*TRANSACTION_TYPES, name="transaction_type"))
    quantity: Mapped[float] = mapped_column(Float, default=0.0)
    price: Mapped[float] = mapped_column(Float, default=0.0)
    total: Mapped[float] = mapped_column(Float)
    date: Mapped[dt.date] = mapped_column(Date, index=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=dt.datetime.utcnow)


class StockInfo(Base):
    __tablename__ = "stock_info"
    __table_args__ = (UniqueConstraint("portfolio_id", "ticker", name="uq_stock_info_portfolio_ticker"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    portfolio_id: Mapped[int] = mapped_column(ForeignKey("portfolios.id", ondelete="CASCADE"))
    ticker: Mapped[str] = mapped_column(String(20))
    market_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    dividend_frequency: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    dividend_per_share: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    last_dividend_date: Mapped[Optional[dt.date]] = mapped_column(Date, nullable=True)
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow
    )


__all__ = ["Portfolio", "StockInfo", "TransactionRecord", "TRANSACTION_TYPES"]
