import asyncio

import pytest

from marketlens.application.state.candle_store import CandleStore
from marketlens.application.state.price_aggregator import PriceAggregator
from marketlens.application.use_cases.process_market_event_usecase import (
    CANDLE_UPDATE_TOPIC,
    TICKER_TOPIC,
    ProcessMarketEventUseCase,
)
from marketlens.domain.value_objects.tick import KlineEvent, SeriesKey, TickerEvent

from tests.conftest import BTC_1M, make_candle, uptrend


@pytest.fixture
def store():
    return CandleStore(keys=[BTC_1M])


@pytest.fixture
def processor(mock_publisher, store):
    return ProcessMarketEventUseCase(
        publisher=mock_publisher,
        store=store,
        aggregator=PriceAggregator(),
    )


def kline(i, close=100.5, instrument="BTC_USDT", timeframe="1m"):
    return KlineEvent("binance", instrument, timeframe, make_candle(i, 100, 101, 99, close))


class TestTicker:

    @pytest.mark.asyncio
    async def test_publishes_aggregated_ticker(self, processor, mock_publisher):
        await processor.handle(TickerEvent("binance", "BTC_USDT", 100.0))
        await processor.handle(TickerEvent("kraken", "BTC_USDT", 102.0))

        topic, ticker = mock_publisher.publish.await_args.args
        assert topic == TICKER_TOPIC
        assert ticker.price == 101.0
        assert ticker.sources == ("binance", "kraken")

    @pytest.mark.asyncio
    async def test_zero_price_not_published(self, processor, mock_publisher):
        assert await processor.handle_ticker(TickerEvent("coinbase", "BTC_USDT", 0.0)) is None
        mock_publisher.publish.assert_not_awaited()


class TestKline:

    @pytest.mark.asyncio
    async def test_unknown_key_ignored(self, processor, mock_publisher, store):
        assert await processor.handle_kline(kline(0, instrument="ETH_USDT")) is None
        mock_publisher.publish.assert_not_awaited()
        assert not store.has(SeriesKey("ETH_USDT", "1m"))

    @pytest.mark.asyncio
    async def test_short_series_has_no_analysis(self, processor, mock_publisher):
        update = await processor.handle_kline(kline(0))

        topic, published = mock_publisher.publish.await_args.args
        assert topic == CANDLE_UPDATE_TOPIC
        assert published is update
        data = update.to_dict()
        assert data["patterns"] == []
        assert data["decision"] is None
        assert data["indicators"] is None
        assert len(data["allCandles"]) == 1

    @pytest.mark.asyncio
    async def test_analysis_after_three_candles(self, processor, store):
        for i in range(3):
            update = await processor.handle_kline(kline(i))

        assert update.analysis is not None
        assert update.analysis.indicators is None
        assert store.get_analysis(BTC_1M) is update.analysis

    @pytest.mark.asyncio
    async def test_indicators_after_thirty_candles(self, processor, store):
        await processor.replace_series(BTC_1M, uptrend(29))
        update = await processor.handle_kline(
            KlineEvent("binance", "BTC_USDT", "1m", uptrend(30)[-1])
        )

        assert update.analysis.indicators is not None
        assert update.to_dict()["indicators"]["rsi"] == 100.0

    @pytest.mark.asyncio
    async def test_shrunk_series_clears_stale_analysis(self, processor, store):
        await processor.replace_series(BTC_1M, uptrend(10))
        assert store.get_analysis(BTC_1M) is not None

        await processor.replace_series(BTC_1M, uptrend(2))

        assert store.get_analysis(BTC_1M) is None
        assert processor.current_update(BTC_1M).analysis is None

    @pytest.mark.asyncio
    async def test_broadcast_tail_is_limited(self, mock_publisher, store):
        processor = ProcessMarketEventUseCase(mock_publisher, store, PriceAggregator(),
                                              broadcast_candles=5)
        await processor.replace_series(BTC_1M, uptrend(20))
        update = await processor.handle_kline(kline(20))
        assert len(update.recent) == 5

    @pytest.mark.asyncio
    async def test_current_update(self, processor):
        assert processor.current_update(BTC_1M) is None
        await processor.handle_kline(kline(0))
        assert processor.current_update(BTC_1M).candle.open_time == 0


class TestRunLoop:

    @pytest.mark.asyncio
    async def test_consumes_queue_and_survives_bad_events(self, processor, mock_publisher):
        queue: asyncio.Queue = asyncio.Queue()
        mock_publisher.publish.side_effect = [RuntimeError("boom"), None]
        await queue.put(TickerEvent("binance", "BTC_USDT", 100.0))
        await queue.put(TickerEvent("binance", "BTC_USDT", 101.0))

        task = asyncio.create_task(processor.run(queue))
        for _ in range(100):
            if queue.empty() and mock_publisher.publish.await_count == 2:
                break
            await asyncio.sleep(0.01)
        await processor.stop()
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

        assert mock_publisher.publish.await_count == 2
        assert processor.processed_count == 1
