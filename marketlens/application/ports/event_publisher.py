"""
MarketLens – Application Port: Event Publisher
================================================
Interfaz para publicar eventos hacia el resto del proceso.

Los use cases publican eventos; la infraestructura decide CÓMO
entregarlos (EventBus en memoria hoy).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class IEventPublisher(ABC):
    """
    Interfaz para publicar eventos del sistema.

    IMPLEMENTACIONES:
    - EventBus (asyncio.Queue fan-out)
    """

    @abstractmethod
    async def publish(self, topic: str, data: Any) -> None:
        """
        Publica un evento a un tópico.

        Args:
            topic: Nombre del tópico (e.g. "ticker", "candle_update")
            data: Payload del evento
        """
