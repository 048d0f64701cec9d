"""
MarketLens – Process Market Event Use Case
============================================
Consumidor único del tópico "market_event".

FLUJO:
  Conectores (binance / coinbase / kraken)
       │  TickerEvent | KlineEvent
       ▼
  EventBus ("market_event")
       │
       ▼
  ProcessMarketEventUseCase.run()
       │
       ├── TickerEvent → PriceAggregator.apply()
       │       └── precio agregado > 0 → publish("ticker", TickerState)
       │
       └── KlineEvent  → [lock por clave]
               ├── CandleStore.upsert()
               ├── analyze_series()        → patrones / decisión / indicadores
               ├── CandleStore.set_analysis()
               └── publish("candle_update", CandleUpdateDTO)

CONCURRENCIA:
- Upsert + recálculo se hacen bajo el asyncio.Lock de la clave; el
  backfill usa el mismo lock vía replace_series().
- Un error en un evento se loguea y el loop continúa.
"""

from __future__ import annotations

import asyncio
from typing import Iterable, List, Optional

from marketlens.application.dto.candle_update_dto import CandleUpdateDTO
from marketlens.application.ports.event_publisher import IEventPublisher
from marketlens.application.services.analysis import analyze_series
from marketlens.application.state.candle_store import CandleStore
from marketlens.application.state.price_aggregator import PriceAggregator
from marketlens.domain.entities.candle import Candle
from marketlens.domain.value_objects.analysis import SeriesAnalysis
from marketlens.domain.value_objects.tick import KlineEvent, SeriesKey, TickerEvent
from marketlens.domain.value_objects.ticker_state import TickerState
from marketlens.shared.logging.logger import get_logger

logger = get_logger("process_market_event")

# Tópicos del EventBus
MARKET_EVENT_TOPIC = "market_event"
TICKER_TOPIC = "ticker"
CANDLE_UPDATE_TOPIC = "candle_update"


class ProcessMarketEventUseCase:
    """
    Aplica eventos normalizados al estado y publica los resultados.
    """

    def __init__(
        self,
        publisher: IEventPublisher,
        store: CandleStore,
        aggregator: PriceAggregator,
        min_candles_patterns: int = 3,
        min_candles_indicators: int = 30,
        broadcast_candles: int = 50,
    ) -> None:
        self._publisher = publisher
        self._store = store
        self._aggregator = aggregator
        self._min_patterns = min_candles_patterns
        self._min_indicators = min_candles_indicators
        self._broadcast_candles = broadcast_candles
        self._running = False
        self._processed_count = 0

    @property
    def processed_count(self) -> int:
        return self._processed_count

    async def run(self, queue: asyncio.Queue) -> None:
        """
        Loop principal. Espera en queue.get() con timeout para permitir
        un shutdown limpio vía stop().
        """
        self._running = True
        logger.info("ProcessMarketEventUseCase iniciado, consumiendo '%s'", MARKET_EVENT_TOPIC)

        while self._running:
            try:
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=1.0)
                except asyncio.TimeoutError:
                    continue

                await self.handle(event)
                self._processed_count += 1

            except asyncio.CancelledError:
                logger.info("ProcessMarketEventUseCase cancelado")
                break
            except Exception as e:
                logger.error("Error procesando evento de mercado: %s", e, exc_info=True)
                continue

    async def stop(self) -> None:
        self._running = False
        logger.info(
            "ProcessMarketEventUseCase detenido. Eventos procesados: %d",
            self._processed_count,
        )

    async def handle(self, event: object) -> None:
        if isinstance(event, KlineEvent):
            await self.handle_kline(event)
        elif isinstance(event, TickerEvent):
            await self.handle_ticker(event)
        else:
            logger.warning("Evento desconocido descartado: %r", type(event).__name__)

    # ─── Ticker ─────────────────────────────────────────────────────────

    async def handle_ticker(self, event: TickerEvent) -> Optional[TickerState]:
        ticker = self._aggregator.apply(event)
        if ticker.price <= 0:
            return None
        await self._publisher.publish(TICKER_TOPIC, ticker)
        return ticker

    # ─── Kline ──────────────────────────────────────────────────────────

    async def handle_kline(self, event: KlineEvent) -> Optional[CandleUpdateDTO]:
        key = event.key
        if not self._store.has(key):
            logger.debug("Clave no configurada ignorada: %s", key.wire)
            return None

        async with self._store.lock(key):
            changed = self._store.upsert(key, event.candle)
            analysis = self._recompute(key, changed.candles)

        update = CandleUpdateDTO(
            key=key,
            candle=event.candle,
            recent=changed.candles[-self._broadcast_candles:],
            analysis=analysis,
        )
        await self._publisher.publish(CANDLE_UPDATE_TOPIC, update)
        return update

    async def replace_series(self, key: SeriesKey, candles: Iterable[Candle]) -> List[Candle]:
        """Reemplazo completo (backfill / cache) bajo el lock de la clave."""
        async with self._store.lock(key):
            stored = self._store.replace_all(key, candles)
            self._recompute(key, stored)
        return stored

    def _recompute(self, key: SeriesKey, candles) -> Optional[SeriesAnalysis]:
        analysis = analyze_series(
            candles,
            min_patterns=self._min_patterns,
            min_indicators=self._min_indicators,
        )
        self._store.set_analysis(key, analysis)
        if analysis is not None:
            logger.debug(
                "Análisis %s: %d patrones, decisión %s",
                key.wire,
                len(analysis.patterns),
                analysis.decision.action.value,
            )
        return analysis

    def current_update(self, key: SeriesKey) -> Optional[CandleUpdateDTO]:
        """Estado actual de una clave (respuesta a "subscribe")."""
        candles = self._store.get(key)
        if not candles:
            return None
        return CandleUpdateDTO(
            key=key,
            candle=candles[-1],
            recent=tuple(candles[-self._broadcast_candles:]),
            analysis=self._store.get_analysis(key),
        )
