"""
MarketLens – Price Aggregator
===============================
Fusiona el último precio de cada exchange en un ticker por instrumento.

REGLAS:
- Precio publicado = media SIN ponderar de los exchanges con precio > 0.
- Un exchange que nunca reportó se excluye (no cuenta como 0).
- Orden de fuentes determinista: binance, coinbase, kraken.
- Estadísticas 24h solo desde Binance (feed más completo).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from marketlens.domain.value_objects.tick import TickerEvent
from marketlens.domain.value_objects.ticker_state import TickerState

EXCHANGE_ORDER: Tuple[str, ...] = ("binance", "coinbase", "kraken")
PRICE_DECIMALS = 8


@dataclass
class _InstrumentPrices:
    prices: Dict[str, float] = field(default_factory=dict)
    change24h: float = 0.0
    high24h: float = 0.0
    low24h: float = 0.0
    volume24h: float = 0.0


class PriceAggregator:

    def __init__(self) -> None:
        self._state: Dict[str, _InstrumentPrices] = {}

    def update(self, exchange: str, instrument: str, price: float) -> None:
        """Registrar el último precio de un exchange."""
        self._state.setdefault(instrument, _InstrumentPrices()).prices[exchange] = price

    def apply(self, event: TickerEvent) -> TickerState:
        """Aplicar un TickerEvent completo y devolver el ticker resultante."""
        self.update(event.exchange, event.instrument, event.price)
        if event.exchange == "binance" and event.has_stats:
            state = self._state[event.instrument]
            state.high24h = event.high24h or 0.0
            state.low24h = event.low24h or 0.0
            state.volume24h = event.volume24h or 0.0
            state.change24h = event.change24h or 0.0
        return self.ticker(event.instrument)

    def aggregate(self, instrument: str) -> Tuple[float, List[str]]:
        """
        (precio medio, fuentes). Sin precios positivos → (0, []).
        """
        state = self._state.get(instrument)
        if state is None:
            return 0.0, []

        sources = [ex for ex in EXCHANGE_ORDER if state.prices.get(ex, 0) > 0]
        sources += sorted(
            ex for ex, p in state.prices.items() if ex not in EXCHANGE_ORDER and p > 0
        )
        if not sources:
            return 0.0, []

        mean = sum(state.prices[ex] for ex in sources) / len(sources)
        return round(mean, PRICE_DECIMALS), sources

    def ticker(self, instrument: str) -> TickerState:
        price, sources = self.aggregate(instrument)
        state = self._state.get(instrument) or _InstrumentPrices()
        return TickerState(
            instrument=instrument,
            price=price,
            exchange_prices={ex: p for ex, p in state.prices.items() if p > 0},
            change24h=state.change24h,
            high24h=state.high24h,
            low24h=state.low24h,
            volume24h=state.volume24h,
            sources=tuple(sources),
        )

    def tickers(self) -> Dict[str, TickerState]:
        return {instrument: self.ticker(instrument) for instrument in self._state}
