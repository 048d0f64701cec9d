"""
MarketLens – Backfill Use Case
================================
Carga histórica por clave con cache read-through opcional.

FLUJO load(instrument, timeframe):
  cache hit  → replace_series(cache) → refresh REST en background
  cache miss → REST → replace_series → cache write-through (TTL)

Los errores de la cache y del refresh en background nunca llegan
al llamador; solo se loguean.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional, Set

from marketlens.application.ports.cache_gateway import ICacheGateway
from marketlens.application.ports.history_provider import IHistoryProvider
from marketlens.application.state.candle_store import CandleStore
from marketlens.application.use_cases.process_market_event_usecase import (
    ProcessMarketEventUseCase,
)
from marketlens.domain.entities.candle import Candle
from marketlens.domain.value_objects.tick import SeriesKey
from marketlens.shared.logging.logger import get_logger

logger = get_logger("backfill")


class BackfillUseCase:

    def __init__(
        self,
        store: CandleStore,
        processor: ProcessMarketEventUseCase,
        history: IHistoryProvider,
        cache: Optional[ICacheGateway] = None,
        limit: int = 100,
        cache_ttl: int = 300,
        pause_seconds: float = 0.1,
    ) -> None:
        self._store = store
        self._processor = processor
        self._history = history
        self._cache = cache
        self._limit = limit
        self._cache_ttl = cache_ttl
        self._pause = pause_seconds
        self._background: Set[asyncio.Task] = set()

    async def load(self, instrument: str, timeframe: str) -> List[Candle]:
        """Serie de la clave tras el backfill ([] si la clave no existe)."""
        key = SeriesKey(instrument, timeframe)
        if not self._store.has(key):
            logger.warning("Backfill pedido para clave no configurada: %s", key.wire)
            return []

        if self._cache is not None:
            cached = await self._cache.get(instrument, timeframe)
            if cached:
                stored = await self._processor.replace_series(key, cached)
                logger.info("Cache hit %s (%d velas) – refresh en background", key.wire, len(stored))
                self._spawn(self._refresh(key))
                return stored

        return await self._fetch_and_store(key)

    async def backfill_all(self) -> int:
        """Recorre todas las claves; un fallo no detiene el recorrido."""
        keys = self._store.keys()
        loaded = 0
        logger.info("Backfill histórico de %d series…", len(keys))
        for key in keys:
            try:
                if await self.load(key.instrument, key.timeframe):
                    loaded += 1
            except Exception as e:
                logger.error("Backfill falló para %s: %s", key.wire, e)
            await asyncio.sleep(self._pause)
        logger.info("Backfill completo: %d/%d series cargadas", loaded, len(keys))
        return loaded

    async def close(self) -> None:
        """Cancelar refrescos pendientes."""
        for task in list(self._background):
            task.cancel()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        self._background.clear()

    # ─── Interno ────────────────────────────────────────────────────────

    async def _fetch_and_store(self, key: SeriesKey) -> List[Candle]:
        candles = await self._history.fetch_klines(key.instrument, key.timeframe, self._limit)
        if not candles:
            return self._store.get(key)

        stored = await self._processor.replace_series(key, candles)
        logger.info("Backfill %s: %d velas", key.wire, len(stored))

        if self._cache is not None:
            await self._cache.set(key.instrument, key.timeframe, stored, self._cache_ttl)
        return stored

    async def _refresh(self, key: SeriesKey) -> None:
        try:
            await self._fetch_and_store(key)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Refresh en background falló para %s: %s", key.wire, e)

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
