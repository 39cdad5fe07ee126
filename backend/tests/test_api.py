import asyncio
from contextlib import asynccontextmanager

import pytest
from httpx import ASGITransport, AsyncClient

from yieldly.api.database import Database
from yieldly.api.main import create_app
from yieldly.quotes import QuoteError


class StubQuotes:
    def __init__(self, prices: dict[str, float]) -> None:
        self.prices = prices
        self.requested: list[str] = []

    async def global_quote(self, symbol: str) -> float:
        self.requested.append(symbol)
        if symbol not in self.prices:
            raise QuoteError(f"No quote returned for {symbol}")
        return self.prices[symbol]


def _client(database: Database, quotes: StubQuotes | None = None):
    app = create_app(database, quotes=quotes or StubQuotes({}))

    @asynccontextmanager
    async def _manager():
        async with app.router.lifespan_context(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                yield client

    return _manager


async def _create_portfolio(api_client: AsyncClient, name: str = "Income", code: str = "inc") -> dict:
    response = await api_client.post("/api/portfolios", json={"name": name, "code": code})
    assert response.status_code == 201
    return response.json()


async def _add(api_client: AsyncClient, portfolio_id: int, **fields) -> dict:
    payload = {"portfolio_id": portfolio_id, "date": "2024-01-02", **fields}
    response = await api_client.post("/api/transactions", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_health(database: Database):
    client_manager = _client(database)

    async def _scenario():
        async with client_manager() as api_client:
            response = await api_client.get("/health")
            assert response.status_code == 200
            assert response.json()["status"] == "ok"

    asyncio.run(_scenario())


def test_portfolio_lifecycle(database: Database):
    client_manager = _client(database)

    async def _scenario():
        async with client_manager() as api_client:
            created = await _create_portfolio(api_client)
            assert created["code"] == "INC"
            assert created["display_order"] == 0

            duplicate = await api_client.post("/api/portfolios", json={"name": "Other", "code": "INC"})
            assert duplicate.status_code == 400

            ordered = await api_client.put(f"/api/portfolios/{created['id']}/order", json={"display_order": 3})
            assert ordered.status_code == 200
            assert ordered.json()["display_order"] == 3

            listing = await api_client.get("/api/portfolios")
            assert [item["code"] for item in listing.json()] == ["INC"]

            deleted = await api_client.delete(f"/api/portfolios/{created['id']}")
            assert deleted.status_code == 204

            missing = await api_client.get(f"/api/portfolios/{created['id']}/summary")
            assert missing.status_code == 404
            assert (await api_client.delete(f"/api/portfolios/{created['id']}")).status_code == 404

    asyncio.run(_scenario())


def test_transactions_feed_the_summary(database: Database):
    client_manager = _client(database)

    async def _scenario():
        async with client_manager() as api_client:
            portfolio = await _create_portfolio(api_client)
            pid = portfolio["id"]

            buy = await _add(api_client, pid, ticker="abc", type="BUY", quantity=10, price=5)
            assert buy["ticker"] == "ABC"
            assert buy["total"] == pytest.approx(50)
            await _add(api_client, pid, ticker="ABC", type="SELL", quantity=4, price=8, date="2024-02-01")
            await _add(api_client, pid, ticker="ABC", type="DIVIDEND", total=6, date="2024-03-01")

            stock = await api_client.put(f"/api/portfolios/{pid}/stocks/abc", json={"market_price": 7})
            assert stock.status_code == 200
            assert stock.json()["ticker"] == "ABC"

            summary = await api_client.get(f"/api/portfolios/{pid}/summary")
            assert summary.status_code == 200
            [holding] = summary.json()
            assert holding["ticker"] == "ABC"
            assert holding["shares"] == pytest.approx(6)
            assert holding["market_value"] == pytest.approx(42)
            assert holding["return"] == pytest.approx(30)
            assert holding["return_percent"] == pytest.approx(60)
            assert holding["has_market_price"] is True

            history = await api_client.get(f"/api/portfolios/{pid}/transactions")
            assert [item["type"] for item in history.json()] == ["DIVIDEND", "SELL", "BUY"]

            dividend_id = history.json()[0]["id"]
            assert (await api_client.delete(f"/api/transactions/{dividend_id}")).status_code == 204
            assert (await api_client.delete(f"/api/transactions/{dividend_id}")).status_code == 404

            summary = await api_client.get(f"/api/portfolios/{pid}/summary")
            assert summary.json()[0]["return"] == pytest.approx(24)

    asyncio.run(_scenario())


def test_transaction_validation_errors(database: Database):
    client_manager = _client(database)

    async def _scenario():
        async with client_manager() as api_client:
            portfolio = await _create_portfolio(api_client)
            base = {"portfolio_id": portfolio["id"], "ticker": "ABC", "date": "2024-01-02"}

            bad_type = await api_client.post("/api/transactions", json={**base, "type": "HOLD"})
            assert bad_type.status_code == 400

            negative = await api_client.post("/api/transactions", json={**base, "type": "BUY", "quantity": -1})
            assert negative.status_code == 400

            unknown = await api_client.post(
                "/api/transactions", json={**base, "portfolio_id": portfolio["id"] + 50, "type": "BUY"}
            )
            assert unknown.status_code == 404

    asyncio.run(_scenario())


def test_stock_info_partial_update_and_dividend_projection(database: Database):
    client_manager = _client(database)

    async def _scenario():
        async with client_manager() as api_client:
            pid = (await _create_portfolio(api_client))["id"]
            await _add(api_client, pid, ticker="SCHD", type="BUY", quantity=100, price=20)

            first = await api_client.put(
                f"/api/portfolios/{pid}/stocks/SCHD",
                json={"dividend_frequency": "quarterly", "dividend_per_share": 0.5},
            )
            assert first.json()["dividend_frequency"] == "Quarterly"

            second = await api_client.put(f"/api/portfolios/{pid}/stocks/SCHD", json={"market_price": 20})
            body = second.json()
            assert body["dividend_per_share"] == pytest.approx(0.5)
            assert body["market_price"] == pytest.approx(20)

            [holding] = (await api_client.get(f"/api/portfolios/{pid}/summary")).json()
            assert holding["next_payout"] == pytest.approx(50)
            assert holding["annual_payout"] == pytest.approx(200)
            assert holding["dividend_yield"] == pytest.approx(10)

    asyncio.run(_scenario())


def test_refresh_prices_reports_partial_failures(database: Database):
    quotes = StubQuotes({"ABC": 9.0})
    client_manager = _client(database, quotes)

    async def _scenario():
        async with client_manager() as api_client:
            pid = (await _create_portfolio(api_client))["id"]
            await _add(api_client, pid, ticker="ABC", type="BUY", quantity=2, price=5)
            await _add(api_client, pid, ticker="XYZ", type="BUY", quantity=1, price=5)
            await _add(api_client, pid, ticker="GONE", type="BUY", quantity=1, price=5)
            await _add(api_client, pid, ticker="GONE", type="SELL", quantity=1, price=6)

            response = await api_client.post(f"/api/portfolios/{pid}/refresh-prices")
            assert response.status_code == 200
            body = response.json()
            assert body["message"] == "Updated 1 of 2 prices"
            assert body["updated"] == {"ABC": 9.0}
            assert [item["ticker"] for item in body["errors"]] == ["XYZ"]
            assert quotes.requested == ["ABC", "XYZ"]

            summary = (await api_client.get(f"/api/portfolios/{pid}/summary")).json()
            prices = {item["ticker"]: item["market_price"] for item in summary}
            assert prices == {"ABC": 9.0, "GONE": 0.0, "XYZ": 0.0}

    asyncio.run(_scenario())


def test_csv_import(database: Database):
    client_manager = _client(database)
    csv_data = "\n".join(
        [
            "Date,Symbol,Portfolio,Type,Quantity,Share Price,Total",
            '15-Jan-24,SCHD,INC,B,10,$75.50,"$755.00"',
            "20-Mar-24,SCHD,INC,D,,,$6.60",
            "21-Mar-24,VTI,NOPE,B,1,200,200",
            "22-Mar-24,VTI,INC,Q,1,200,200",
        ]
    )

    async def _scenario():
        async with client_manager() as api_client:
            pid = (await _create_portfolio(api_client))["id"]

            response = await api_client.post("/api/import/csv", json={"csvData": csv_data})
            assert response.status_code == 200
            body = response.json()
            assert body["success"] is True
            assert body["imported"] == 2
            assert body["errors"] == 2
            assert [item["line"] for item in body["details"]["imported"]] == [2, 3]
            assert body["details"]["imported"][0]["symbol"] == "SCHD"
            assert body["details"]["imported"][0]["date"] == "2024-01-15"
            errors = body["details"]["errors"]
            assert [item["line"] for item in errors] == [4, 5]
            assert errors[0]["error"] == "Portfolio 'NOPE' not found"

            [holding] = (await api_client.get(f"/api/portfolios/{pid}/summary")).json()
            assert holding["shares"] == pytest.approx(10)
            assert holding["buy_total"] == pytest.approx(755)
            assert holding["dividends_paid"] == pytest.approx(6.6)

            empty = await api_client.post("/api/import/csv", json={"csvData": "  "})
            assert empty.status_code == 400

    asyncio.run(_scenario())
