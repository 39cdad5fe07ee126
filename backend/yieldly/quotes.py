"""Market quote lookups used to refresh stock reference prices."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Deque, Dict

import httpx

from yieldly.config import get_settings

logger = logging.getLogger(__name__)

_WINDOW_SECONDS = 60.0
_ERROR_KEYS = ("Error Message", "Note", "Information")


class QuoteError(RuntimeError):
    """Raised when a quote cannot be obtained for a ticker."""


class AlphaVantageClient:
    """Throttled Alpha Vantage client for latest-price lookups."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        requests_per_minute: int | None = None,
        client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key or settings.alphavantage_api_key
        self._requests_per_minute = requests_per_minute or settings.alphavantage_requests_per_minute
        self._base_url = base_url or settings.alphavantage_base_url
        self._timeout = timeout_seconds or settings.quote_timeout_seconds
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()
        self._calls: Deque[float] = deque()
        self._lock = asyncio.Lock()

    async def _throttle(self) -> None:
        async with self._lock:
            now = time.monotonic()
            while self._calls and now - self._calls[0] >= _WINDOW_SECONDS:
                self._calls.popleft()
            if len(self._calls) >= self._requests_per_minute:
                wait_for = _WINDOW_SECONDS - (now - self._calls[0])
                logger.debug("Quote rate limit reached; sleeping %.1fs", wait_for)
                await asyncio.sleep(wait_for)
                self._calls.popleft()
            self._calls.append(time.monotonic())

    async def _get(self, params: Dict[str, Any]) -> Dict[str, Any]:
        await self._throttle()
        query = {**params, "apikey": self._api_key}
        response = await self._client.get(self._base_url, params=query, timeout=self._timeout)
        response.raise_for_status()
        try:
            payload = response.json()
        except ValueError as exc:
            raise QuoteError(f"Unreadable quote response for {params.get('symbol')}") from exc
        if not isinstance(payload, dict):
            raise QuoteError(f"Unexpected quote response for {params.get('symbol')}")
        for key in _ERROR_KEYS:
            if key in payload:
                raise QuoteError(str(payload[key]))
        return payload

    async def global_quote(self, symbol: str) -> float:
        """Return the latest traded price for ``symbol``."""

        payload = await self._get({"function": "GLOBAL_QUOTE", "symbol": symbol})
        quote = payload.get("Global Quote") or {}
        raw_price = quote.get("05. price")
        if raw_price is None:
            raise QuoteError(f"No quote returned for {symbol}")
        try:
            price = float(raw_price)
        except (TypeError, ValueError):
            raise QuoteError(f"Invalid price {raw_price!r} for {symbol}") from None
        if price <= 0:
            raise QuoteError(f"Invalid price {raw_price!r} for {symbol}")
        return price

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


@dataclass
class RefreshResult:
    updated: Dict[str, float] = field(default_factory=dict)
    errors: list[Dict[str, str]] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Updated {len(self.updated)} of {len(self.updated) + len(self.errors)} prices"


async def refresh_market_prices(
    tickers: Iterable[str],
    fetch_quote: Callable[[str], Awaitable[float]],
) -> RefreshResult:
    """Fetch quotes one ticker at a time, collecting failures instead of aborting."""

    result = RefreshResult()
    for ticker in tickers:
        try:
            result.updated[ticker] = await fetch_quote(ticker)
        except (QuoteError, httpx.HTTPError) as exc:
            logger.warning("Quote refresh for %s failed: %s", ticker, exc)
            result.errors.append({"ticker": ticker, "error": str(exc) or exc.__class__.__name__})
    logger.info("Quote refresh finished: %s", result.message)
    return result


__all__ = ["AlphaVantageClient", "QuoteError", "RefreshResult", "refresh_market_prices"]
