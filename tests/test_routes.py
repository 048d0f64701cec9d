import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock

from marketlens.application.state.candle_store import CandleStore
from marketlens.application.state.price_aggregator import PriceAggregator
from marketlens.infrastructure.event_bus import EventBus
from marketlens.infrastructure.exchanges.binance import BinanceConnector
from marketlens.infrastructure.exchanges.supervisor import ConnectionSupervisor
from marketlens.presentation.api import routes

from tests.conftest import BTC_1M, uptrend


@pytest.fixture
def store():
    return CandleStore(keys=[BTC_1M])


@pytest.fixture
def backfill(store):
    loader = MagicMock()

    async def load(instrument, timeframe):
        return store.replace_all(BTC_1M, uptrend(4))

    loader.load = AsyncMock(side_effect=load)
    return loader


@pytest.fixture
def client(store, backfill):
    aggregator = PriceAggregator()
    aggregator.update("binance", "BTC_USDT", 100.0)
    hub = MagicMock()
    hub.client_count = 2
    bus = EventBus()
    asyncio.run(bus.subscribe("ticker", "ws_broadcast_ticker"))
    connector = BinanceConnector(
        MagicMock(), "wss://example", ConnectionSupervisor("binance"),
        symbols=["BTCUSDT"], timeframes=["1m"],
    )
    routes.init_routes(
        hub, store, aggregator,
        backfill=backfill,
        connectors={"binance": connector},
        instruments=["BTC_USDT"],
        timeframes=["1m"],
        event_bus=bus,
    )
    app = FastAPI()
    app.include_router(routes.router)
    return TestClient(app)


class TestRoutes:

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["service"] == "marketlens"
        assert body["clients"] == 2
        assert body["exchanges"]["binance"]["connected"] is False
        assert body["series"] == {"BTC_USDT_1m": 0}
        assert body["event_bus"] == {
            "ticker": {"ws_broadcast_ticker": {"queued": 0, "delivered": 0, "dropped": 0}}
        }

    def test_instruments(self, client):
        assert client.get("/api/instruments").json() == {
            "instruments": ["BTC_USDT"],
            "timeframes": ["1m"],
        }

    def test_tickers(self, client):
        body = client.get("/api/tickers").json()
        assert body["BTC_USDT"]["price"] == 100.0

    def test_candles_backfill_on_empty(self, client, backfill):
        body = client.get("/api/candles/BTC_USDT/1m").json()
        assert body["count"] == 4
        backfill.load.assert_awaited_once_with("BTC_USDT", "1m")

    def test_unknown_key(self, client):
        assert client.get("/api/decisions/FOO/1m").json() == {
            "error": "Unknown instrument/timeframe: FOO/1m"
        }

    def test_empty_analysis(self, client):
        assert client.get("/api/patterns/BTC_USDT/1m").json()["patterns"] == []
        assert client.get("/api/decisions/BTC_USDT/1m").json()["decision"] is None
        assert client.get("/api/indicators/BTC_USDT/1m").json()["indicators"] is None
