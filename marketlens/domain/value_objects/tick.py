"""
MarketLens – Domain Value Objects: eventos de mercado normalizados
===================================================================
Cada conector traduce su formato de cable a uno de estos dos eventos.

- frozen=True → inmutable, seguro para pasar entre coroutines.
- slots=True  → menor footprint de memoria en hot-path.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from marketlens.domain.entities.candle import Candle


@dataclass(frozen=True, slots=True)
class SeriesKey:
    """Clave estructurada de una serie: (instrumento, timeframe)."""

    instrument: str   # e.g. "BTC_USDT"
    timeframe: str    # e.g. "1m"

    @property
    def wire(self) -> str:
        """Forma plana usada solo en JSON hacia clientes."""
        return f"{self.instrument}_{self.timeframe}"


@dataclass(frozen=True, slots=True)
class TickerEvent:
    """Último precio de un exchange para un instrumento."""

    exchange: str                     # "binance" | "coinbase" | "kraken"
    instrument: str
    price: float
    high24h: Optional[float] = None
    low24h: Optional[float] = None
    volume24h: Optional[float] = None
    change24h: Optional[float] = None  # variación porcentual 24h

    @property
    def has_stats(self) -> bool:
        return self.high24h is not None


@dataclass(frozen=True, slots=True)
class KlineEvent:
    """Actualización de una vela (en curso o cerrada)."""

    exchange: str
    instrument: str
    timeframe: str
    candle: Candle

    @property
    def key(self) -> SeriesKey:
        return SeriesKey(self.instrument, self.timeframe)
