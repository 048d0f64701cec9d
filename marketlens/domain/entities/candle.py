"""
MarketLens – Domain Entity: Candle
====================================
Vela OHLCV tipada. Se parsea UNA vez en la frontera de ingreso
(exchange, REST, cache) y a partir de ahí solo circulan floats.

Decisiones de diseño:
- frozen=True → una vela nunca se muta; una actualización de la misma
  vela (mismo open_time) REEMPLAZA la entrada en la serie.
- Identidad = open_time (epoch ms) dentro de una serie.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

from marketlens.domain.exceptions.domain_errors import ParseError


def parse_number(field: str, value: Any) -> float:
    """Convertir un campo numérico (float o string) o lanzar ParseError."""
    if value is None or isinstance(value, bool):
        raise ParseError(f"Campo '{field}' ausente o inválido", field=field, value=value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ParseError(
            f"Campo '{field}' no numérico: {value!r}", field=field, value=value
        ) from None
    if not math.isfinite(number):
        raise ParseError(f"Campo '{field}' no finito: {value!r}", field=field, value=value)
    return number


@dataclass(frozen=True, slots=True)
class Candle:
    """Vela OHLCV identificada por su open_time."""

    open_time: int       # epoch ms de apertura
    open: float
    high: float
    low: float
    close: float
    volume: float
    close_time: int      # epoch ms de cierre
    is_closed: bool = False

    @classmethod
    def parse(
        cls,
        *,
        open_time: Any,
        open: Any,
        high: Any,
        low: Any,
        close: Any,
        volume: Any,
        close_time: Any = None,
        is_closed: Any = False,
    ) -> "Candle":
        """Construir desde valores crudos (strings de exchange incluidos)."""
        if open_time is None:
            raise ParseError("openTime es obligatorio", field="openTime")
        start = int(parse_number("openTime", open_time))
        end = int(parse_number("closeTime", close_time)) if close_time is not None else start
        return cls(
            open_time=start,
            open=parse_number("open", open),
            high=parse_number("high", high),
            low=parse_number("low", low),
            close=parse_number("close", close),
            volume=parse_number("volume", volume),
            close_time=end,
            is_closed=bool(is_closed),
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Candle":
        """Inverso de to_dict() (cache, mensajes de cliente)."""
        return cls.parse(
            open_time=data.get("openTime"),
            open=data.get("open"),
            high=data.get("high"),
            low=data.get("low"),
            close=data.get("close"),
            volume=data.get("volume"),
            close_time=data.get("closeTime"),
            is_closed=data.get("isClosed", False),
        )

    # ─── Geometría de la vela ───────────────────────────────────────────

    @property
    def body(self) -> float:
        return abs(self.close - self.open)

    @property
    def range(self) -> float:
        return self.high - self.low

    @property
    def upper_wick(self) -> float:
        return self.high - max(self.open, self.close)

    @property
    def lower_wick(self) -> float:
        return min(self.open, self.close) - self.low

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        return self.close < self.open

    def to_dict(self) -> dict:
        """Serialización para WebSocket / REST / cache."""
        return {
            "openTime": self.open_time,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
            "closeTime": self.close_time,
            "isClosed": self.is_closed,
        }
