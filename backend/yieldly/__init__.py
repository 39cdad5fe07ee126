"""Core package for the Yieldly holdings engine."""

from .holdings import build_holdings_summary
from .models import (
    DividendFrequency,
    HoldingSummary,
    InvalidTransactionError,
    StockReference,
    Transaction,
    TransactionType,
)

__all__ = [
    "DividendFrequency",
    "HoldingSummary",
    "InvalidTransactionError",
    "StockReference",
    "Transaction",
    "TransactionType",
    "build_holdings_summary",
]
