"""
MarketLens – Application Port: Cache Gateway
==============================================
Cache externa OPCIONAL de series de velas.

Su presencia o ausencia nunca cambia resultados, solo la latencia
del arranque en frío. Las implementaciones no deben propagar errores:
un fallo se reporta como cache miss.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from marketlens.domain.entities.candle import Candle


class ICacheGateway(ABC):

    @abstractmethod
    async def get(self, instrument: str, timeframe: str) -> Optional[List[Candle]]:
        """Serie cacheada, o None si no existe / la cache no responde."""

    @abstractmethod
    async def set(
        self,
        instrument: str,
        timeframe: str,
        candles: List[Candle],
        ttl: int,
    ) -> None:
        """Escritura best-effort con expiración en segundos."""

    async def close(self) -> None:
        """Liberar conexiones (opcional)."""
