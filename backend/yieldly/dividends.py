"""Dividend payout projection helpers."""
from __future__ import annotations

from dataclasses import dataclass

from .models import DividendFrequency


@dataclass(frozen=True)
class DividendProjection:
    next_payout: float
    annual_payout: float
    dividend_yield: float


def payments_per_year(frequency: str | DividendFrequency | None) -> int:
    """Return the annualisation multiplier; unset or unknown schedules yield 0."""

    parsed = DividendFrequency.parse(frequency)
    if parsed is None:
        return 0
    return parsed.payments_per_year


def project_dividends(
    shares: float,
    dividend_per_share: float,
    frequency: str | DividendFrequency | None,
    market_value: float,
) -> DividendProjection:
    """Project the next and annual payout at the current position size.

    The yield is expressed in percent of ``market_value`` and is 0 whenever
    there is no positive market value to divide by.
    """

    next_payout = shares * dividend_per_share
    annual_payout = next_payout * payments_per_year(frequency)
    if market_value > 0:
        dividend_yield = (annual_payout / market_value) * 100
    else:
        dividend_yield = 0.0
    return DividendProjection(
        next_payout=next_payout,
        annual_payout=annual_payout,
        dividend_yield=dividend_yield,
    )


__all__ = ["DividendProjection", "payments_per_year", "project_dividends"]
