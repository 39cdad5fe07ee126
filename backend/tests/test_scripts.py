import asyncio
from pathlib import Path

import pytest

from scripts import import_csv
from yieldly.api import ledger
from yieldly.api.database import Database

CSV_TEXT = "\n".join(
    [
        "Date,Symbol,Portfolio,Type,Quantity,Share Price,Total",
        "15-Jan-24,SCHD,INC,B,10,75,750",
        "16-Jan-24,VTI,NOPE,B,1,200,200",
    ]
)


def test_import_script_records_rows(tmp_path: Path, capsys):
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"
    csv_path = tmp_path / "transactions.csv"
    csv_path.write_text(CSV_TEXT, encoding="utf-8")

    async def _seed():
        database = Database(url)
        await database.create_all()
        async with database.session() as session:
            await ledger.create_portfolio(session, "Income", "INC")
        await database.dispose()

    asyncio.run(_seed())
    asyncio.run(import_csv._run(csv_path, url))

    output = capsys.readouterr().out
    assert "line 3: Portfolio 'NOPE' not found" in output
    assert "Imported 1 transactions" in output


def test_import_script_releases_engine_on_failure(tmp_path: Path, monkeypatch):
    disposed: list[bool] = []

    class BrokenDatabase:
        def __init__(self, url=None):
            self.url = url

        async def create_all(self):
            raise RuntimeError("database unavailable")

        async def dispose(self):
            disposed.append(True)

    monkeypatch.setattr(import_csv, "Database", BrokenDatabase)
    csv_path = tmp_path / "transactions.csv"
    csv_path.write_text(CSV_TEXT, encoding="utf-8")

    with pytest.raises(RuntimeError, match="database unavailable"):
        asyncio.run(import_csv._run(csv_path, None))

    assert disposed == [True]
