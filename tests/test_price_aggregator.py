import pytest

from marketlens.application.state.price_aggregator import PriceAggregator
from marketlens.domain.value_objects.tick import TickerEvent


@pytest.fixture
def aggregator():
    return PriceAggregator()


class TestAggregate:

    def test_mean_of_three_exchanges(self, aggregator):
        aggregator.update("binance", "BTC_USDT", 100.0)
        aggregator.update("coinbase", "BTC_USDT", 102.0)
        aggregator.update("kraken", "BTC_USDT", 104.0)

        price, sources = aggregator.aggregate("BTC_USDT")
        assert price == 102.0
        assert sources == ["binance", "coinbase", "kraken"]

    def test_missing_exchange_is_excluded_not_zero(self, aggregator):
        aggregator.update("kraken", "BTC_USDT", 104.0)
        aggregator.update("binance", "BTC_USDT", 100.0)

        price, sources = aggregator.aggregate("BTC_USDT")
        assert price == 102.0
        assert sources == ["binance", "kraken"]

    def test_non_positive_prices_are_ignored(self, aggregator):
        aggregator.update("binance", "BTC_USDT", 100.0)
        aggregator.update("coinbase", "BTC_USDT", 0.0)

        assert aggregator.aggregate("BTC_USDT") == (100.0, ["binance"])

    def test_unknown_instrument(self, aggregator):
        assert aggregator.aggregate("ETH_USDT") == (0.0, [])


class TestApply:

    def test_24h_stats_only_from_binance(self, aggregator):
        aggregator.apply(TickerEvent("binance", "BTC_USDT", 100.0,
                                     high24h=110.0, low24h=90.0, volume24h=5.0, change24h=1.5))
        ticker = aggregator.apply(TickerEvent("coinbase", "BTC_USDT", 102.0))

        assert ticker.price == 101.0
        assert ticker.high24h == 110.0
        assert ticker.change24h == 1.5
        assert ticker.exchange_prices == {"binance": 100.0, "coinbase": 102.0}

    def test_to_dict_shape(self, aggregator):
        ticker = aggregator.apply(TickerEvent("kraken", "ETH_USDT", 3000.0))
        data = ticker.to_dict()

        assert data["instrument"] == "ETH_USDT"
        assert data["perExchangePrice"] == {"kraken": 3000.0}
        assert data["sources"] == ["kraken"]
        assert data["high24h"] == 0.0

    def test_tickers_lists_every_instrument(self, aggregator):
        aggregator.update("binance", "BTC_USDT", 1.0)
        aggregator.update("binance", "ETH_USDT", 2.0)
        assert set(aggregator.tickers()) == {"BTC_USDT", "ETH_USDT"}
