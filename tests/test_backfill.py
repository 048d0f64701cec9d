import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from marketlens.application.state.candle_store import CandleStore
from marketlens.application.state.price_aggregator import PriceAggregator
from marketlens.application.use_cases.backfill_usecase import BackfillUseCase
from marketlens.application.use_cases.process_market_event_usecase import (
    ProcessMarketEventUseCase,
)
from marketlens.domain.value_objects.tick import SeriesKey

from tests.conftest import BTC_1M, uptrend

ETH_1M = SeriesKey("ETH_USDT", "1m")


@pytest.fixture
def store():
    return CandleStore(keys=[BTC_1M, ETH_1M])


@pytest.fixture
def history():
    provider = MagicMock()
    provider.fetch_klines = AsyncMock(return_value=uptrend(10))
    return provider


@pytest.fixture
def cache():
    gateway = MagicMock()
    gateway.get = AsyncMock(return_value=None)
    gateway.set = AsyncMock()
    return gateway


def make_backfill(store, history, cache=None, publisher=None):
    processor = ProcessMarketEventUseCase(publisher or MagicMock(), store, PriceAggregator())
    return BackfillUseCase(store, processor, history, cache=cache, pause_seconds=0)


class TestLoad:

    @pytest.mark.asyncio
    async def test_fetches_and_stores(self, store, history):
        backfill = make_backfill(store, history)

        candles = await backfill.load("BTC_USDT", "1m")

        assert len(candles) == 10
        assert store.size(BTC_1M) == 10
        assert store.get_analysis(BTC_1M) is not None
        history.fetch_klines.assert_awaited_once_with("BTC_USDT", "1m", 100)

    @pytest.mark.asyncio
    async def test_unknown_key(self, store, history):
        backfill = make_backfill(store, history)
        assert await backfill.load("DOGE_USDT", "1h") == []
        history.fetch_klines.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_response_keeps_current_series(self, store, history):
        history.fetch_klines.return_value = []
        backfill = make_backfill(store, history)
        assert await backfill.load("BTC_USDT", "1m") == []

    @pytest.mark.asyncio
    async def test_cache_miss_writes_through(self, store, history, cache):
        backfill = make_backfill(store, history, cache)

        await backfill.load("BTC_USDT", "1m")

        cache.get.assert_awaited_once_with("BTC_USDT", "1m")
        instrument, timeframe, candles, ttl = cache.set.await_args.args
        assert (instrument, timeframe, len(candles), ttl) == ("BTC_USDT", "1m", 10, 300)

    @pytest.mark.asyncio
    async def test_cache_hit_serves_cache_then_refreshes(self, store, history, cache):
        cache.get.return_value = uptrend(5)
        backfill = make_backfill(store, history, cache)

        candles = await backfill.load("BTC_USDT", "1m")
        assert len(candles) == 5

        for _ in range(50):
            if store.size(BTC_1M) == 10:
                break
            await asyncio.sleep(0.01)
        assert store.size(BTC_1M) == 10
        await backfill.close()

    @pytest.mark.asyncio
    async def test_refresh_failure_is_swallowed(self, store, history, cache):
        cache.get.return_value = uptrend(5)
        history.fetch_klines.side_effect = RuntimeError("down")
        backfill = make_backfill(store, history, cache)

        assert len(await backfill.load("BTC_USDT", "1m")) == 5
        await asyncio.sleep(0.01)
        await backfill.close()
        assert store.size(BTC_1M) == 5


class TestBackfillAll:

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_the_rest(self, store, history):
        history.fetch_klines.side_effect = [RuntimeError("boom"), uptrend(10)]
        backfill = make_backfill(store, history)

        assert await backfill.backfill_all() == 1
        assert store.size(BTC_1M) == 0
        assert store.size(ETH_1M) == 10
