"""
MarketLens – Application Port: History Provider
=================================================
Fuente de velas históricas para el backfill.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from marketlens.domain.entities.candle import Candle


class IHistoryProvider(ABC):
    """
    IMPLEMENTACIONES:
    - BinanceHistoryClient (REST /api/v3/klines)
    """

    @abstractmethod
    async def fetch_klines(
        self,
        instrument: str,
        timeframe: str,
        limit: int = 100,
    ) -> List[Candle]:
        """
        Velas cerradas más recientes, ascendentes por open_time.

        Nunca lanza por errores de transporte: devuelve [].
        """
