import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from marketlens.infrastructure.cache import redis_cache_gateway
from marketlens.infrastructure.cache.redis_cache_gateway import RedisCacheGateway, cache_key

from tests.conftest import uptrend


@pytest.fixture
def redis_client():
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock()
    client.aclose = AsyncMock()
    return client


class TestRedisCacheGateway:

    def test_key_format(self):
        assert cache_key("BTC_USDT", "1m") == "marketlens:candles:BTC_USDT:1m"

    @pytest.mark.asyncio
    async def test_set_with_ttl(self, redis_client):
        gateway = RedisCacheGateway(client=redis_client)

        await gateway.set("BTC_USDT", "1m", uptrend(3), 300)

        key, payload = redis_client.set.await_args.args
        assert key == "marketlens:candles:BTC_USDT:1m"
        assert len(json.loads(payload)) == 3
        assert redis_client.set.await_args.kwargs == {"ex": 300}
        assert gateway.available is True

    @pytest.mark.asyncio
    async def test_get_hit(self, redis_client):
        redis_client.get.return_value = json.dumps([c.to_dict() for c in uptrend(3)])
        gateway = RedisCacheGateway(client=redis_client)

        assert await gateway.get("BTC_USDT", "1m") == uptrend(3)

    @pytest.mark.asyncio
    async def test_get_miss(self, redis_client):
        gateway = RedisCacheGateway(client=redis_client)
        assert await gateway.get("BTC_USDT", "1m") is None

    @pytest.mark.asyncio
    async def test_corrupt_entry_is_a_miss(self, redis_client):
        redis_client.get.return_value = "{not json"
        gateway = RedisCacheGateway(client=redis_client)
        assert await gateway.get("BTC_USDT", "1m") is None

    @pytest.mark.asyncio
    async def test_unavailable_redis_never_raises(self, redis_client):
        redis_client.get.side_effect = RedisConnectionError("refused")
        redis_client.set.side_effect = RedisConnectionError("refused")
        gateway = RedisCacheGateway(client=redis_client)

        assert await gateway.get("BTC_USDT", "1m") is None
        await gateway.set("BTC_USDT", "1m", uptrend(1), 300)
        assert gateway.available is False

    @pytest.mark.asyncio
    async def test_close(self, redis_client):
        await RedisCacheGateway(client=redis_client).close()
        redis_client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_timeout_is_a_miss(self, redis_client):
        redis_client.get.side_effect = RedisTimeoutError("Timeout reading from socket")
        redis_client.set.side_effect = RedisTimeoutError("Timeout connecting to server")
        gateway = RedisCacheGateway(client=redis_client)

        assert await gateway.get("BTC_USDT", "1m") is None
        await gateway.set("BTC_USDT", "1m", uptrend(1), 300)
        assert gateway.available is False

    def test_client_has_socket_timeouts(self, monkeypatch):
        from_url = MagicMock()
        monkeypatch.setattr(redis_cache_gateway.aioredis, "from_url", from_url)

        RedisCacheGateway(url="redis://cache:6379/0", timeout=0.5)

        from_url.assert_called_once_with(
            "redis://cache:6379/0",
            decode_responses=True,
            socket_connect_timeout=0.5,
            socket_timeout=0.5,
        )
