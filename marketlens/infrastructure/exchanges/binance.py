"""
MarketLens – Binance Connector
================================
Streams combinados de Binance: todos los streams van en la URL.

  <sym>@ticker          → {"e": "24hrTicker", "s", "c", "h", "l", "v", "P"}
  <sym>@kline_<tf>      → {"e": "kline", "s", "k": {t, o, h, l, c, v, T, x, i}}

Binance es la única fuente de estadísticas 24h y la que dispara el
backfill histórico al conectar.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping

from marketlens.domain.entities.candle import Candle, parse_number
from marketlens.domain.exceptions.domain_errors import ParseError
from marketlens.domain.value_objects.tick import KlineEvent, TickerEvent
from marketlens.infrastructure.exchanges.base import ExchangeConnector
from marketlens.shared.config.symbols import display_name

EXCHANGE = "binance"


def build_stream_url(base_url: str, symbols: Iterable[str], timeframes: Iterable[str]) -> str:
    symbols = [s.lower() for s in symbols]
    timeframes = list(timeframes)
    streams = [f"{s}@ticker" for s in symbols]
    streams += [f"{s}@kline_{tf}" for s in symbols for tf in timeframes]
    return f"{base_url}?streams={'/'.join(streams)}"


def translate(message: Any) -> List[object]:
    """Mensaje de stream combinado (o payload directo) → eventos."""
    if not isinstance(message, Mapping):
        return []
    data = message.get("data", message)
    if not isinstance(data, Mapping):
        return []

    event_type = data.get("e")
    if event_type == "24hrTicker":
        return _ticker(data)
    if event_type == "kline":
        return _kline(data)
    return []


def _ticker(data: Mapping[str, Any]) -> List[object]:
    instrument = display_name(str(data.get("s", "")))
    if instrument is None:
        return []
    return [
        TickerEvent(
            exchange=EXCHANGE,
            instrument=instrument,
            price=parse_number("c", data.get("c")),
            high24h=parse_number("h", data.get("h")),
            low24h=parse_number("l", data.get("l")),
            volume24h=parse_number("v", data.get("v")),
            change24h=parse_number("P", data.get("P")),
        )
    ]


def _kline(data: Mapping[str, Any]) -> List[object]:
    instrument = display_name(str(data.get("s", "")))
    if instrument is None:
        return []
    k = data.get("k")
    if not isinstance(k, Mapping):
        raise ParseError("Kline sin payload 'k'", field="k", value=k)
    timeframe = k.get("i")
    if not timeframe:
        raise ParseError("Kline sin intervalo", field="i", value=timeframe)

    candle = Candle.parse(
        open_time=k.get("t"),
        open=k.get("o"),
        high=k.get("h"),
        low=k.get("l"),
        close=k.get("c"),
        volume=k.get("v"),
        close_time=k.get("T"),
        is_closed=bool(k.get("x", False)),
    )
    return [KlineEvent(exchange=EXCHANGE, instrument=instrument, timeframe=str(timeframe), candle=candle)]


class BinanceConnector(ExchangeConnector):
    name = EXCHANGE

    def __init__(self, *args, symbols: Iterable[str] = (), timeframes: Iterable[str] = (), **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._symbols = list(symbols)
        self._timeframes = list(timeframes)

    def url(self) -> str:
        return build_stream_url(self._url, self._symbols, self._timeframes)

    def translate(self, data: Any) -> List[object]:
        return translate(data)
