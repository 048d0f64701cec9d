"""
MarketLens – Domain Value Object: TickerState
===============================================
Ticker agregado publicado por instrumento.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


@dataclass(frozen=True, slots=True)
class TickerState:
    """Precio agregado + precio por exchange + estadísticas 24h."""

    instrument: str
    price: float = 0.0
    exchange_prices: Dict[str, float] = field(default_factory=dict)
    change24h: float = 0.0
    high24h: float = 0.0
    low24h: float = 0.0
    volume24h: float = 0.0
    sources: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "instrument": self.instrument,
            "price": self.price,
            "perExchangePrice": dict(self.exchange_prices),
            "change24h": self.change24h,
            "high24h": self.high24h,
            "low24h": self.low24h,
            "volume24h": self.volume24h,
            "sources": list(self.sources),
        }
