"""Bulk transaction import from delimited broker exports."""
from __future__ import annotations

import io
import logging
import re
import warnings
from dataclasses import dataclass, field
from datetime import date
from typing import Any, List

import pandas as pd

from .models import TransactionType

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["date", "symbol", "portfolio", "type", "quantity", "price", "total"]

TYPE_CODES = {
    "B": TransactionType.BUY,
    "S": TransactionType.SELL,
    "D": TransactionType.DIVIDEND,
    "DR": TransactionType.DIVIDEND_REINVEST,
}

_MONTHS = {
    "JAN": 1, "FEB": 2, "MAR": 3, "APR": 4, "MAY": 5, "JUN": 6,
    "JUL": 7, "AUG": 8, "SEP": 9, "OCT": 10, "NOV": 11, "DEC": 12,
}
_AMOUNT_NOISE = re.compile(r"[$\s,]")


@dataclass(frozen=True)
class ParsedTransaction:
    """A validated CSV row, not yet bound to a stored portfolio."""

    line: int
    portfolio_code: str
    ticker: str
    type: TransactionType
    quantity: float
    price: float
    total: float
    date: date


@dataclass(frozen=True)
class RowError:
    line: int
    error: str


@dataclass
class CsvParseResult:
    rows: List[ParsedTransaction] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)


def parse_transaction_date(raw: str) -> date:
    """Parse ``DD-MMM-YY``, ``DD-MMM-YYYY`` or ISO ``YYYY-MM-DD`` dates.

    Two-digit years below 50 are read as 20xx, the rest as 19xx.
    """

    value = raw.strip()
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass

    parts = value.split("-")
    if len(parts) != 3:
        raise ValueError(f"Unrecognised date {raw!r}")
    day_part, month_part, year_part = parts
    month = _MONTHS.get(month_part[:3].upper())
    if month is None:
        raise ValueError(f"Unknown month {month_part!r} in date {raw!r}")
    try:
        day = int(day_part)
        year = int(year_part)
    except ValueError:
        raise ValueError(f"Unrecognised date {raw!r}") from None
    if len(year_part) == 2:
        year += 2000 if year < 50 else 1900
    return date(year, month, day)


def parse_amount(raw: str) -> float:
    """Parse a money or share amount; currency symbols and separators are ignored."""

    cleaned = _AMOUNT_NOISE.sub("", raw)
    if not cleaned:
        return 0.0
    try:
        return float(cleaned)
    except ValueError:
        raise ValueError(f"Invalid number {raw!r}") from None


def parse_type_code(raw: str) -> TransactionType:
    code = raw.strip().upper()
    if code in TYPE_CODES:
        return TYPE_CODES[code]
    return TransactionType.parse(code)


def _is_blank(values: List[Any]) -> bool:
    return all(pd.isna(value) or not str(value).strip() for value in values)


def _parse_row(line: int, values: List[Any]) -> ParsedTransaction:
    if any(pd.isna(value) for value in values):
        raise ValueError("Invalid CSV format")
    date_str, symbol, portfolio_code, type_code, quantity, price, total = (
        str(value).strip() for value in values
    )
    if not symbol:
        raise ValueError("Symbol is required")
    if not portfolio_code:
        raise ValueError("Portfolio code is required")
    return ParsedTransaction(
        line=line,
        portfolio_code=portfolio_code.upper(),
        ticker=symbol.upper(),
        type=parse_type_code(type_code),
        quantity=parse_amount(quantity),
        price=parse_amount(price),
        total=parse_amount(total),
        date=parse_transaction_date(date_str),
    )


def _read_frame(csv_text: str, skiprows: int = 1) -> pd.DataFrame:
    # Row i of the frame is line i + 1 + skiprows of the text: blank lines are
    # kept so numbering stays aligned. Fields past the seventh are dropped.
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", pd.errors.ParserWarning)
        return pd.read_csv(
            io.StringIO(csv_text),
            header=None,
            names=CSV_COLUMNS,
            skiprows=skiprows,
            index_col=False,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
            engine="python",
        )


def _collect(result: CsvParseResult, line: int, values: List[Any]) -> None:
    if _is_blank(values):
        return
    try:
        result.rows.append(_parse_row(line, values))
    except ValueError as exc:
        result.errors.append(RowError(line=line, error=str(exc)))


def _collect_by_line(result: CsvParseResult, csv_text: str) -> None:
    """Parse each line on its own so one unreadable line cannot sink the file."""

    for line, raw in enumerate(csv_text.splitlines()[1:], start=2):
        if not raw.strip():
            continue
        try:
            frame = _read_frame(raw, skiprows=0)
        except (pd.errors.ParserError, pd.errors.EmptyDataError):
            result.errors.append(RowError(line=line, error="Invalid CSV format"))
            continue
        for row in frame.itertuples(index=False, name=None):
            _collect(result, line, list(row))


def parse_transactions_csv(csv_text: str) -> CsvParseResult:
    """Parse ``Date, Symbol, Portfolio, Type, Quantity, Share Price, Total`` rows.

    Every malformed line is reported in ``errors`` with its 1-based line
    number; valid lines are returned in file order.
    """

    result = CsvParseResult()
    text = csv_text.strip()
    if not text:
        return result
    try:
        frame = _read_frame(text)
    except pd.errors.EmptyDataError:
        return result
    except pd.errors.ParserError as exc:
        logger.warning("CSV could not be read in one pass (%s); parsing line by line", exc)
        _collect_by_line(result, text)
    else:
        for index, row in enumerate(frame.itertuples(index=False, name=None)):
            _collect(result, index + 2, list(row))

    logger.info(
        "Parsed transaction CSV: %d valid rows, %d rejected", len(result.rows), len(result.errors)
    )
    return result


__all__ = [
    "CSV_COLUMNS",
    "CsvParseResult",
    "ParsedTransaction",
    "RowError",
    "TYPE_CODES",
    "parse_amount",
    "parse_transaction_date",
    "parse_transactions_csv",
    "parse_type_code",
]
