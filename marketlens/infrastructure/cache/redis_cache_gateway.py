"""
MarketLens – Redis Cache Gateway
==================================
Series de velas cacheadas en Redis (redis.asyncio).

FORMATO:
  key   = marketlens:candles:<instrument>:<timeframe>
  value = JSON [candle.to_dict(), ...]
  SET con ex=ttl

Ningún error sale de aquí: un fallo se reporta como miss y se loguea
una sola vez por transición disponible ↔ no disponible.
"""

from __future__ import annotations

import json
from typing import List, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from marketlens.application.ports.cache_gateway import ICacheGateway
from marketlens.domain.entities.candle import Candle
from marketlens.domain.exceptions.domain_errors import ParseError
from marketlens.shared.logging.logger import get_logger

logger = get_logger("redis_cache")

KEY_PREFIX = "marketlens:candles"


def cache_key(instrument: str, timeframe: str) -> str:
    return f"{KEY_PREFIX}:{instrument}:{timeframe}"


class RedisCacheGateway(ICacheGateway):

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        client: Optional[aioredis.Redis] = None,
        timeout: float = 1.0,
    ) -> None:
        # Host inalcanzable → miss tras `timeout` segundos
        self._client = client or aioredis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=timeout,
            socket_timeout=timeout,
        )
        self._available: Optional[bool] = None

    @property
    def available(self) -> Optional[bool]:
        return self._available

    async def get(self, instrument: str, timeframe: str) -> Optional[List[Candle]]:
        try:
            raw = await self._client.get(cache_key(instrument, timeframe))
        except (RedisError, OSError) as e:
            self._mark(False, e)
            return None
        self._mark(True)

        if raw is None:
            return None
        try:
            return [Candle.from_mapping(item) for item in json.loads(raw)]
        except (ValueError, TypeError, AttributeError, ParseError) as e:
            logger.warning("Entrada de cache corrupta %s %s: %s", instrument, timeframe, e)
            return None

    async def set(
        self,
        instrument: str,
        timeframe: str,
        candles: List[Candle],
        ttl: int,
    ) -> None:
        payload = json.dumps([c.to_dict() for c in candles])
        try:
            await self._client.set(cache_key(instrument, timeframe), payload, ex=ttl)
        except (RedisError, OSError) as e:
            self._mark(False, e)
            return
        self._mark(True)

    async def close(self) -> None:
        try:
            await self._client.aclose()
        except (RedisError, OSError) as e:
            logger.debug("Error cerrando cliente Redis: %s", e)

    def _mark(self, ok: bool, error: Exception | None = None) -> None:
        if self._available is ok:
            return
        self._available = ok
        if ok:
            logger.info("Cache Redis disponible")
        else:
            logger.warning("Cache Redis no disponible, modo fetch directo: %s", error)
