"""Import a broker CSV export into the ledger."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from yieldly.api import ledger
from yieldly.api.database import Database
from yieldly.importer import parse_transactions_csv


async def _run(csv_path: Path, database_url: str | None) -> None:
    parsed = parse_transactions_csv(csv_path.read_text(encoding="utf-8"))
    for error in parsed.errors:
        print(f"line {error.line}: {error.error}")

    database = Database(database_url)
    imported = 0
    try:
        await database.create_all()
        async with database.session() as session:
            for row in parsed.rows:
                portfolio = await ledger.get_portfolio_by_code(session, row.portfolio_code)
                if portfolio is None:
                    print(f"line {row.line}: Portfolio '{row.portfolio_code}' not found")
                    continue
                try:
                    await ledger.record_transaction(
                        session,
                        portfolio.id,
                        row.ticker,
                        row.type,
                        row.date,
                        quantity=row.quantity,
                        price=row.price,
                        total=row.total,
                    )
                except ValueError as exc:
                    print(f"line {row.line}: {exc}")
                    continue
                imported += 1
    finally:
        await database.dispose()
    print(f"Imported {imported} transactions from {csv_path}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Import Date,Symbol,Portfolio,Type,Quantity,Price,Total rows")
    parser.add_argument("csv_file")
    parser.add_argument("--database-url", default=None)
    args = parser.parse_args()
    csv_path = Path(args.csv_file)
    if not csv_path.exists():
        raise SystemExit(f"CSV file not found: {csv_path}")
    asyncio.run(_run(csv_path, args.database_url))


if __name__ == "__main__":
    main()
