"""
MarketLens – Event Bus (asyncio.Queue fan-out)
===============================================
Bus de eventos interno para desacoplar productores (conectores de
exchange, pipeline) de consumidores (pipeline, broadcast hub).

Arquitectura:
  ┌──────────┐                ┌───────────┐
  │ Binance  │──market_event─▸│           │──▸ ProcessMarketEventUseCase
  │ Coinbase │                │ Event Bus │
  │ Kraken   │                │ (fan-out) │──ticker / candle_update──▸ BroadcastHub
  └──────────┘                └───────────┘

BACK-PRESSURE:
- Una Subscription por consumidor, con su propia asyncio.Queue acotada.
- Cola llena → se descarta el evento MÁS ANTIGUO de ESA cola y se
  cuenta en `dropped`. El productor (socket del exchange) nunca espera.
- El primer descarte de cada consumidor se loguea como WARNING; los
  siguientes solo suman al contador (visible en /health).
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List

from marketlens.application.ports.event_publisher import IEventPublisher
from marketlens.shared.logging.logger import get_logger

logger = get_logger("event_bus")


@dataclass
class Subscription:
    consumer: str
    queue: asyncio.Queue = field(repr=False)
    delivered: int = 0
    dropped: int = 0

    def offer(self, data: Any) -> bool:
        """Encolar con drop-oldest. Retorna False si hubo descarte."""
        lost = False
        if self.queue.full():
            try:
                self.queue.get_nowait()
                lost = True
            except asyncio.QueueEmpty:
                pass
        self.queue.put_nowait(data)
        self.delivered += 1
        if lost:
            self.dropped += 1
        return not lost


class EventBus(IEventPublisher):
    """Fan-out por tópico sobre colas asyncio, una por consumidor."""

    def __init__(self, max_queue_size: int = 10_000) -> None:
        self._max_queue_size = max_queue_size
        self._topics: Dict[str, List[Subscription]] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, topic: str, consumer_name: str) -> asyncio.Queue:
        """Registrar un consumidor; retorna su Queue exclusiva."""
        async with self._lock:
            sub = Subscription(consumer_name, asyncio.Queue(maxsize=self._max_queue_size))
            self._topics.setdefault(topic, []).append(sub)
        logger.info(
            "Consumidor '%s' suscrito a '%s' (max_queue=%d)",
            consumer_name,
            topic,
            self._max_queue_size,
        )
        return sub.queue

    async def publish(self, topic: str, data: Any) -> None:
        for sub in self._topics.get(topic, ()):
            if not sub.offer(data) and sub.dropped == 1:
                logger.warning(
                    "Consumidor '%s' no da abasto en '%s', descartando eventos antiguos",
                    sub.consumer,
                    topic,
                )

    async def unsubscribe_all(self, topic: str | None = None) -> None:
        """Soltar suscriptores de un tópico, o de todos (shutdown)."""
        async with self._lock:
            if topic is None:
                self._topics.clear()
            else:
                self._topics.pop(topic, None)
        logger.info("Suscriptores eliminados (%s)", topic or "todos")

    @property
    def stats(self) -> Dict[str, Dict[str, Dict[str, int]]]:
        """tópico → consumidor → {queued, delivered, dropped}."""
        return {
            topic: {
                sub.consumer: {
                    "queued": sub.queue.qsize(),
                    "delivered": sub.delivered,
                    "dropped": sub.dropped,
                }
                for sub in subs
            }
            for topic, subs in self._topics.items()
        }
