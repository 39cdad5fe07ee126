"""Aggregation of ledger transactions into per-ticker holding summaries."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from .dividends import project_dividends
from .models import HoldingSummary, StockReference, Transaction, TransactionType

# Net positions smaller than this are float residue from partial sells.
_SHARE_EPSILON = 1e-9


@dataclass
class _Totals:
    """Running sums for one ticker."""

    shares_bought: float = 0.0
    shares_sold: float = 0.0
    buy_total: float = 0.0
    sale_total: float = 0.0
    dividends_paid: float = 0.0

    def add(self, tx: Transaction) -> None:
        if tx.type.is_acquisition:
            self.shares_bought += tx.quantity
            self.buy_total += tx.total
        elif tx.type is TransactionType.SELL:
            self.shares_sold += tx.quantity
            self.sale_total += tx.total
        elif tx.type is TransactionType.DIVIDEND:
            self.dividends_paid += tx.total

    @property
    def shares(self) -> float:
        net = self.shares_bought - self.shares_sold
        if abs(net) < _SHARE_EPSILON:
            return 0.0
        return net


def _ratio(numerator: float, denominator: float) -> float:
    if denominator > 0:
        return numerator / denominator
    return 0.0


def _group_by_ticker(transactions: Iterable[Transaction]) -> Dict[str, List[Transaction]]:
    grouped: Dict[str, List[Transaction]] = {}
    for tx in transactions:
        grouped.setdefault(tx.normalized_ticker(), []).append(tx)
    return grouped


def _index_references(references: Iterable[StockReference]) -> Dict[str, StockReference]:
    return {ref.ticker.strip().upper(): ref for ref in references}


def compute_return(
    market_value: float, sale_total: float, dividends_paid: float, buy_total: float
) -> tuple[float, float]:
    """Return ``(total_return, return_percent)`` net of acquisition cost."""

    total_return = market_value + sale_total + dividends_paid - buy_total
    return total_return, _ratio(total_return, buy_total) * 100


def summarize_ticker(
    ticker: str,
    transactions: Sequence[Transaction],
    reference: Optional[StockReference] = None,
) -> Optional[HoldingSummary]:
    """Aggregate one ticker's transactions, or ``None`` if it is not reportable.

    A ticker is reportable while shares are held or once any sale was made.
    """

    totals = _Totals()
    for tx in transactions:
        totals.add(tx)

    shares = totals.shares
    if not (shares > 0 or totals.shares_sold > 0):
        return None

    market_price = 0.0
    dividend_per_share = 0.0
    frequency = None
    last_dividend_date = None
    if reference is not None:
        if reference.market_price and reference.market_price > 0:
            market_price = reference.market_price
        dividend_per_share = reference.dividend_per_share or 0.0
        frequency = reference.dividend_frequency
        last_dividend_date = reference.last_dividend_date

    market_value = shares * market_price
    total_return, return_percent = compute_return(
        market_value, totals.sale_total, totals.dividends_paid, totals.buy_total
    )
    projection = project_dividends(shares, dividend_per_share, frequency, market_value)

    return HoldingSummary(
        ticker=ticker,
        shares=shares,
        buy_price=_ratio(totals.buy_total, totals.shares_bought),
        market_price=market_price,
        sale_price=_ratio(totals.sale_total, totals.shares_sold),
        buy_total=totals.buy_total,
        market_value=market_value,
        sale_total=totals.sale_total,
        dividends_paid=totals.dividends_paid,
        total_return=total_return,
        return_percent=return_percent,
        dividend_frequency=frequency,
        dividend_per_share=dividend_per_share,
        last_dividend_date=last_dividend_date,
        next_payout=projection.next_payout,
        annual_payout=projection.annual_payout,
        dividend_yield=projection.dividend_yield,
    )


def build_holdings_summary(
    transactions: Sequence[Transaction],
    references: Iterable[StockReference] = (),
) -> List[HoldingSummary]:
    """Compute the holding summary for one portfolio's ledger snapshot."""

    tx_by_ticker = _group_by_ticker(transactions)
    reference_by_ticker = _index_references(references)

    holdings: List[HoldingSummary] = []
    for ticker in sorted(tx_by_ticker):
        summary = summarize_ticker(
            ticker, tx_by_ticker[ticker], reference_by_ticker.get(ticker)
        )
        if summary is not None:
            holdings.append(summary)
    return holdings


__all__ = ["build_holdings_summary", "compute_return", "summarize_ticker"]
