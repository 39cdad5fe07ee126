"""Domain models used by the Yieldly holdings engine."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date
from typing import Optional


class InvalidTransactionError(ValueError):
    """Raised when a transaction record cannot be accepted into the ledger."""


class TransactionType(str, enum.Enum):
    """Closed set of ledger event kinds."""

    BUY = "BUY"
    SELL = "SELL"
    DIVIDEND = "DIVIDEND"
    DIVIDEND_REINVEST = "DIVIDEND_REINVEST"

    @classmethod
    def parse(cls, raw: str | TransactionType) -> TransactionType:
        """Return the member matching ``raw`` (case-insensitive) or raise."""

        if isinstance(raw, cls):
            return raw
        normalized = str(raw or "").strip().upper()
        try:
            return cls(normalized)
        except ValueError:
            allowed = ", ".join(member.value for member in cls)
            raise InvalidTransactionError(
                f"Unsupported transaction type {raw!r}; expected one of {allowed}"
            ) from None

    @property
    def is_acquisition(self) -> bool:
        return self in (TransactionType.BUY, TransactionType.DIVIDEND_REINVEST)


class DividendFrequency(str, enum.Enum):
    """Declared dividend schedules that can be annualised."""

    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    SEMI_ANNUAL = "Semi-Annual"
    ANNUAL = "Annual"

    @classmethod
    def parse(cls, raw: str | None) -> Optional[DividendFrequency]:
        """Return the matching schedule, or ``None`` when unset or unrecognised."""

        if raw is None:
            return None
        if isinstance(raw, cls):
            return raw
        key = str(raw).strip().lower().replace("_", "-").replace(" ", "-")
        for member in cls:
            if member.value.lower() == key:
                return member
        return None

    @property
    def payments_per_year(self) -> int:
        return _PAYMENTS_PER_YEAR[self]


_PAYMENTS_PER_YEAR = {
    DividendFrequency.MONTHLY: 12,
    DividendFrequency.QUARTERLY: 4,
    DividendFrequency.SEMI_ANNUAL: 2,
    DividendFrequency.ANNUAL: 1,
}


@dataclass(frozen=True)
class Transaction:
    """An immutable ledger event for a single ticker."""

    portfolio_id: int
    ticker: str
    type: TransactionType
    quantity: float
    price: float
    total: float
    date: date
    id: Optional[int] = None

    def normalized_ticker(self) -> str:
        """Return the upper-cased ticker for grouping and joins."""

        return self.ticker.strip().upper()


@dataclass(frozen=True)
class StockReference:
    """Mutable-by-upsert market and dividend data for one portfolio ticker.

    ``None`` means "not set" for every optional field.
    """

    portfolio_id: int
    ticker: str
    market_price: Optional[float] = None
    dividend_frequency: Optional[str] = None
    dividend_per_share: Optional[float] = None
    last_dividend_date: Optional[date] = None


@dataclass(frozen=True)
class HoldingSummary:
    """Point-in-time aggregate for one ticker, derived from the ledger."""

    ticker: str
    shares: float
    buy_price: float
    market_price: float
    sale_price: float
    buy_total: float
    market_value: float
    sale_total: float
    dividends_paid: float
    total_return: float
    return_percent: float
    dividend_frequency: Optional[str]
    dividend_per_share: float
    last_dividend_date: Optional[date]
    next_payout: float
    annual_payout: float
    dividend_yield: float

    @property
    def has_market_price(self) -> bool:
        """Market value, return and yield are only meaningful when a price is set."""

        return self.market_price > 0
