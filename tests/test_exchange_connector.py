import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from marketlens.application.use_cases.process_market_event_usecase import MARKET_EVENT_TOPIC
from marketlens.infrastructure.exchanges.binance import BinanceConnector
from marketlens.infrastructure.exchanges.coinbase import CoinbaseConnector
from marketlens.infrastructure.exchanges.supervisor import ConnectionSupervisor


@pytest.fixture
def connector(mock_publisher):
    return BinanceConnector(
        mock_publisher,
        "wss://stream.binance.com:9443/stream",
        ConnectionSupervisor("binance", base_delay=0.001),
        symbols=["BTCUSDT"],
        timeframes=["1m"],
    )


class TestHandleMessage:

    @pytest.mark.asyncio
    async def test_publishes_translated_events(self, connector, mock_publisher):
        raw = json.dumps({"data": {"e": "24hrTicker", "s": "BTCUSDT", "c": "100",
                                   "h": "110", "l": "90", "v": "5", "P": "1"}})

        assert await connector.handle_message(raw) == 1

        topic, event = mock_publisher.publish.await_args.args
        assert topic == MARKET_EVENT_TOPIC
        assert event.price == 100.0
        assert connector.stats["events_published"] == 1

    @pytest.mark.asyncio
    async def test_invalid_json_is_dropped(self, connector, mock_publisher):
        assert await connector.handle_message("not json{") == 0
        mock_publisher.publish.assert_not_awaited()
        assert connector.stats["parse_errors"] == 1

    @pytest.mark.asyncio
    async def test_parse_error_drops_only_that_message(self, connector, mock_publisher):
        bad = json.dumps({"e": "kline", "s": "BTCUSDT", "k": {"i": "1m", "t": 0, "o": "x"}})
        good = json.dumps({"e": "24hrTicker", "s": "BTCUSDT", "c": "1", "h": "1",
                           "l": "1", "v": "1", "P": "0"})

        assert await connector.handle_message(bad) == 0
        assert await connector.handle_message(good) == 1
        assert connector.stats["messages_received"] == 2
        assert connector.stats["parse_errors"] == 1


class TestLifecycle:

    def test_url_contains_streams(self, connector):
        assert connector.url().endswith("?streams=btcusdt@ticker/btcusdt@kline_1m")

    def test_stats_before_start(self, connector):
        stats = connector.stats
        assert stats["running"] is False
        assert stats["connected"] is False
        assert stats["reconnect_attempts"] == 0

    @pytest.mark.asyncio
    async def test_coinbase_sends_subscription(self, mock_publisher):
        connector = CoinbaseConnector(
            mock_publisher, "wss://ws-feed.exchange.coinbase.com",
            ConnectionSupervisor("coinbase"), instruments=["BTC_USDT"],
        )
        ws = MagicMock()
        ws.send = AsyncMock()

        await connector.subscribe(ws)

        sent = json.loads(ws.send.await_args.args[0])
        assert sent["product_ids"] == ["BTC-USD"]

    @pytest.mark.asyncio
    async def test_stop_without_start(self, connector):
        await connector.stop()
        assert connector.stats["running"] is False
