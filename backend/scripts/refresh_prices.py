"""Refresh market prices for every held ticker in a portfolio."""

from __future__ import annotations

import argparse
import asyncio

from yieldly.api import ledger
from yieldly.api.database import Database
from yieldly.quotes import AlphaVantageClient, refresh_market_prices


async def _run(code: str, database_url: str | None) -> None:
    database = Database(database_url)
    client = AlphaVantageClient()
    try:
        async with database.session() as session:
            portfolio = await ledger.get_portfolio_by_code(session, code)
            if portfolio is None:
                raise SystemExit(f"Portfolio '{code}' not found")
            holdings = await ledger.load_holdings(session, portfolio.id)
            tickers = [item.ticker for item in holdings if item.shares > 0]
            result = await refresh_market_prices(tickers, client.global_quote)
            for ticker, price in result.updated.items():
                await ledger.upsert_stock_reference(session, portfolio.id, ticker, market_price=price)
    finally:
        await client.aclose()
        await database.dispose()
    print(result.message)
    for error in result.errors:
        print(f"{error['ticker']}: {error['error']}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Refresh GLOBAL_QUOTE prices for a portfolio")
    parser.add_argument("--portfolio", required=True, help="Portfolio code")
    parser.add_argument("--database-url", default=None)
    args = parser.parse_args()
    asyncio.run(_run(args.portfolio, args.database_url))


if __name__ == "__main__":
    main()
