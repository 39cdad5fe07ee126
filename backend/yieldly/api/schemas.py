"""Pydantic schemas for API payloads."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from yieldly.models import HoldingSummary


class HealthResponse(BaseModel):
    status: str
    service: str
    database_url: Optional[str]


class PortfolioCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, examples=["Retirement"])
    code: str = Field(..., min_length=1, max_length=32, examples=["RET"])


class PortfolioOrderRequest(BaseModel):
    display_order: int = Field(..., ge=0)


class PortfolioSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    code: str
    display_order: int
    created_at: Optional[datetime] = None


class TransactionCreateRequest(BaseModel):
    portfolio_id: int
    ticker: str = Field(..., min_length=1, max_length=20, examples=["SCHD"])
    type: str = Field(..., examples=["BUY"])
    date: date
    quantity: Optional[float] = None
    price: Optional[float] = None
    total: Optional[float] = None


class TransactionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    portfolio_id: int
    ticker: str
    type: str
    quantity: float
    price: float
    total: float
    date: date
    created_at: Optional[datetime] = None


class StockInfoUpdateRequest(BaseModel):
    """Partial update; omitted or null fields keep their stored value."""

    market_price: Optional[float] = Field(default=None, ge=0)
    dividend_frequency: Optional[str] = Field(default=None, examples=["Quarterly"])
    dividend_per_share: Optional[float] = Field(default=None, ge=0)
    last_dividend_date: Optional[date] = None


class StockInfoSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    portfolio_id: int
    ticker: str
    market_price: Optional[float] = None
    dividend_frequency: Optional[str] = None
    dividend_per_share: Optional[float] = None
    last_dividend_date: Optional[date] = None


class HoldingSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ticker: str
    shares: float
    buy_price: float
    market_price: float
    sale_price: float
    buy_total: float
    market_value: float
    sale_total: float
    dividends_paid: float
    total_return: float = Field(..., alias="return")
    return_percent: float
    dividend_frequency: Optional[str] = None
    dividend_per_share: float
    last_dividend_date: Optional[date] = None
    next_payout: float
    annual_payout: float
    dividend_yield: float
    has_market_price: bool

    @classmethod
    def from_summary(cls, summary: HoldingSummary) -> "HoldingSchema":
        return cls(
            ticker=summary.ticker,
            shares=summary.shares,
            buy_price=summary.buy_price,
            market_price=summary.market_price,
            sale_price=summary.sale_price,
            buy_total=summary.buy_total,
            market_value=summary.market_value,
            sale_total=summary.sale_total,
            dividends_paid=summary.dividends_paid,
            total_return=summary.total_return,
            return_percent=summary.return_percent,
            dividend_frequency=summary.dividend_frequency,
            dividend_per_share=summary.dividend_per_share,
            last_dividend_date=summary.last_dividend_date,
            next_payout=summary.next_payout,
            annual_payout=summary.annual_payout,
            dividend_yield=summary.dividend_yield,
            has_market_price=summary.has_market_price,
        )


class RefreshError(BaseModel):
    ticker: str
    error: str


class RefreshPricesResponse(BaseModel):
    message: str
    updated: dict[str, float]
    errors: list[RefreshError]


class CsvImportRequest(BaseModel):
    csv_data: str = Field(default="", alias="csvData")

    model_config = ConfigDict(populate_by_name=True)


class ImportedLine(BaseModel):
    line: int
    symbol: str
    portfolio: str
    date: date


class ImportLineError(BaseModel):
    line: int
    error: str


class ImportDetails(BaseModel):
    imported: list[ImportedLine]
    errors: list[ImportLineError]


class CsvImportResponse(BaseModel):
    success: bool
    imported: int
    errors: int
    details: ImportDetails


__all__ = [
    "CsvImportRequest",
    "CsvImportResponse",
    "HealthResponse",
    "HoldingSchema",
    "ImportDetails",
    "ImportLineError",
    "ImportedLine",
    "PortfolioCreateRequest",
    "PortfolioOrderRequest",
    "PortfolioSchema",
    "RefreshError",
    "RefreshPricesResponse",
    "StockInfoSchema",
    "StockInfoUpdateRequest",
    "TransactionCreateRequest",
    "TransactionSchema",
]
