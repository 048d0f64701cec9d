# tests/conftest.py
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from marketlens.domain.entities.candle import Candle
from marketlens.domain.value_objects.tick import SeriesKey

MINUTE_MS = 60_000
BTC_1M = SeriesKey("BTC_USDT", "1m")


def make_candle(
    i: int,
    open: float,
    high: float,
    low: float,
    close: float,
    volume: float = 10.0,
    is_closed: bool = True,
) -> Candle:
    """Vela de 1m con open_time = i minutos."""
    start = i * MINUTE_MS
    return Candle(
        open_time=start,
        open=open,
        high=high,
        low=low,
        close=close,
        volume=volume,
        close_time=start + MINUTE_MS - 1,
        is_closed=is_closed,
    )


def uptrend(n: int, start: float = 100.0, step: float = 1.0, volume: float = 10.0) -> List[Candle]:
    """Serie de Marubozus alcistas consecutivos."""
    return [
        make_candle(i, start + i * step, start + (i + 1) * step, start + i * step,
                    start + (i + 1) * step, volume)
        for i in range(n)
    ]


def from_highs(highs: List[float], closes: Optional[List[float]] = None) -> List[Candle]:
    """Velas con máximo dado, mínimo 3 por debajo y cierre en la parte baja."""
    candles = []
    for i, h in enumerate(highs):
        close = closes[i] if closes else h - 2
        candles.append(make_candle(i, h - 1, h, h - 3, close))
    return candles


def from_lows(lows: List[float]) -> List[Candle]:
    """Espejo de from_highs: máximo 3 por encima y cierre en la parte alta."""
    return [make_candle(i, low + 1, low + 3, low, low + 2) for i, low in enumerate(lows)]


@pytest.fixture
def key():
    return BTC_1M


@pytest.fixture
def mock_publisher():
    publisher = MagicMock()
    publisher.publish = AsyncMock()
    return publisher


@pytest.fixture
def mock_websocket():
    """WebSocket de cliente con send_text/accept/close asíncronos."""
    ws = MagicMock()
    ws.accept = AsyncMock()
    ws.send_text = AsyncMock()
    ws.close = AsyncMock()
    ws.receive_text = AsyncMock()
    return ws
