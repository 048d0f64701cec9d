"""
MarketLens – Domain Value Objects: resultados de indicadores
=============================================================
Registros inmutables devueltos por el motor de indicadores.

Cualquier sub-indicador puede ser None cuando falta historia; la
ausencia se propaga tal cual al snapshot y a la serialización.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Sentiment(str, Enum):
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    MIXED = "MIXED"
    NEUTRAL = "NEUTRAL"


def _opt(value) -> Optional[dict]:
    return value.to_dict() if value is not None else None


@dataclass(frozen=True, slots=True)
class MACDResult:
    macd: float
    signal: float
    histogram: float
    trend: str  # bullish | bearish | bullish_crossover | bearish_crossover

    def to_dict(self) -> dict:
        return {
            "macd": self.macd,
            "signal": self.signal,
            "histogram": self.histogram,
            "trend": self.trend,
        }


@dataclass(frozen=True, slots=True)
class StochasticResult:
    k: float
    d: float
    signal: str  # overbought | oversold | bullish_reversal | bearish_reversal | neutral

    def to_dict(self) -> dict:
        return {"k": self.k, "d": self.d, "signal": self.signal}


@dataclass(frozen=True, slots=True)
class ADXResult:
    adx: float
    plus_di: float
    minus_di: float
    trend: str      # no_trend | weak | strong | very_strong
    direction: str  # bullish | bearish | neutral

    def to_dict(self) -> dict:
        return {
            "adx": self.adx,
            "plusDI": self.plus_di,
            "minusDI": self.minus_di,
            "trend": self.trend,
            "direction": self.direction,
        }


@dataclass(frozen=True, slots=True)
class BollingerResult:
    upper: float
    middle: float
    lower: float
    percent_b: float
    bandwidth: float
    signal: str  # overbought | oversold | squeeze | neutral
    squeeze: bool

    def to_dict(self) -> dict:
        return {
            "upper": self.upper,
            "middle": self.middle,
            "lower": self.lower,
            "percentB": self.percent_b,
            "bandwidth": self.bandwidth,
            "signal": self.signal,
            "squeeze": self.squeeze,
        }


@dataclass(frozen=True, slots=True)
class ATRResult:
    atr: float
    atr_percent: float
    volatility: str  # low | medium | high | extreme

    def to_dict(self) -> dict:
        return {
            "atr": self.atr,
            "atrPercent": self.atr_percent,
            "volatility": self.volatility,
        }


@dataclass(frozen=True, slots=True)
class OBVResult:
    obv: float
    trend: str  # bullish | bearish | neutral
    slope: float

    def to_dict(self) -> dict:
        return {"obv": self.obv, "trend": self.trend, "slope": self.slope}


@dataclass(frozen=True, slots=True)
class VolumeZone:
    price_low: float
    price_high: float
    volume: float
    percent: float

    def to_dict(self) -> dict:
        return {
            "priceLow": self.price_low,
            "priceHigh": self.price_high,
            "volume": self.volume,
            "percent": self.percent,
        }


@dataclass(frozen=True, slots=True)
class VolumeProfileResult:
    poc: float
    value_area_high: float
    value_area_low: float
    position: str  # above_value | below_value | in_value
    volume_zones: tuple[VolumeZone, ...]

    def to_dict(self) -> dict:
        return {
            "poc": self.poc,
            "valueAreaHigh": self.value_area_high,
            "valueAreaLow": self.value_area_low,
            "position": self.position,
            "volumeZones": [z.to_dict() for z in self.volume_zones],
        }


@dataclass(frozen=True, slots=True)
class WavePoint:
    index: int
    price: float
    kind: str  # high | low

    def to_dict(self) -> dict:
        return {"index": self.index, "price": self.price, "type": self.kind}


@dataclass(frozen=True, slots=True)
class ElliottWaveResult:
    pattern: str            # impulse | corrective | indeterminate
    direction: str          # bullish | bearish | neutral
    wave: Optional[str]     # última onda completada: "4", "5", "C" o None
    points: tuple[WavePoint, ...]
    projection: Optional[float]
    confidence: str         # low | medium | high

    def to_dict(self) -> dict:
        return {
            "pattern": self.pattern,
            "direction": self.direction,
            "wave": self.wave,
            "points": [p.to_dict() for p in self.points],
            "projection": self.projection,
            "confidence": self.confidence,
        }


@dataclass(frozen=True, slots=True)
class IndicatorSummary:
    sentiment: Sentiment
    bullish_signals: int
    bearish_signals: int
    strength: int  # % de votos del lado dominante
    recommendation: str

    def to_dict(self) -> dict:
        return {
            "sentiment": self.sentiment.value,
            "bullishSignals": self.bullish_signals,
            "bearishSignals": self.bearish_signals,
            "strength": self.strength,
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True, slots=True)
class IndicatorSnapshot:
    """Snapshot completo de indicadores sobre una serie (≥30 velas)."""

    rsi: Optional[float]
    macd: Optional[MACDResult]
    stochastic: Optional[StochasticResult]
    adx: Optional[ADXResult]
    bollinger: Optional[BollingerResult]
    atr: Optional[ATRResult]
    obv: Optional[OBVResult]
    volume_profile: Optional[VolumeProfileResult]
    elliott_wave: Optional[ElliottWaveResult]
    ema20: Optional[float]
    ema50: Optional[float]
    summary: IndicatorSummary

    def to_dict(self) -> dict:
        return {
            "rsi": self.rsi,
            "macd": _opt(self.macd),
            "stochastic": _opt(self.stochastic),
            "adx": _opt(self.adx),
            "bollingerBands": _opt(self.bollinger),
            "atr": _opt(self.atr),
            "obv": _opt(self.obv),
            "volumeProfile": _opt(self.volume_profile),
            "elliottWave": _opt(self.elliott_wave),
            "ema": {"ema20": self.ema20, "ema50": self.ema50},
            "summary": self.summary.to_dict(),
        }
