"""
MarketLens – Domain Service: Indicator Calculator
===================================================
Cálculos de indicadores técnicos puros sobre arrays de una serie.

Funciones de módulo sin estado: reciben listas (más antiguo primero)
y devuelven un resultado tipado, o None si no hay historia suficiente.
El llamador SIEMPRE debe ramificar sobre None; nunca asumir 0.

VENTAJA:
- Testeo unitario sin mocks
- Fórmulas explícitas y auditables
- numpy solo para la regresión lineal (pendiente OBV)
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from marketlens.domain.entities.candle import Candle
from marketlens.domain.services.wave_analyzer import analyze_waves
from marketlens.domain.value_objects.indicators import (
    ADXResult,
    ATRResult,
    BollingerResult,
    IndicatorSnapshot,
    IndicatorSummary,
    MACDResult,
    OBVResult,
    Sentiment,
    StochasticResult,
    VolumeProfileResult,
    VolumeZone,
)

MIN_CANDLES = 30

_RECOMMENDATIONS = {
    Sentiment.BULLISH: "Indicators favor long positions",
    Sentiment.BEARISH: "Indicators favor short positions",
    Sentiment.MIXED: "Conflicting signals - wait for clarity",
    Sentiment.NEUTRAL: "No clear directional bias",
}


# ════════════════════════════════════════════════════════════════
#  MEDIAS MÓVILES
# ════════════════════════════════════════════════════════════════

def sma(values: Sequence[float], period: int) -> Optional[float]:
    if period <= 0 or len(values) < period:
        return None
    return sum(values[-period:]) / period


def ema_series(values: Sequence[float], period: int) -> List[float]:
    """
    Serie EMA completa.

    INICIALIZACIÓN: SMA de los primeros `period` valores.
    RECURRENCIA:    ema = (value - ema) * k + ema,  k = 2 / (period + 1)

    Devuelve len(values) - period + 1 valores (vacía si faltan datos).
    """
    if period <= 0 or len(values) < period:
        return []

    k = 2.0 / (period + 1)
    ema = sum(values[:period]) / period
    out = [ema]
    for value in values[period:]:
        ema = (value - ema) * k + ema
        out.append(ema)
    return out


def ema(values: Sequence[float], period: int) -> Optional[float]:
    series = ema_series(values, period)
    return series[-1] if series else None


# ════════════════════════════════════════════════════════════════
#  OSCILADORES
# ════════════════════════════════════════════════════════════════

def rsi(closes: Sequence[float], period: int = 14) -> Optional[float]:
    """
    RSI con suavizado de Wilder.

    Promedios iniciales sobre los primeros `period` deltas, luego
    avg = (avg * (period - 1) + actual) / period por cada delta.
    RSI = 100 cuando avg_loss == 0.
    """
    if len(closes) < period + 1:
        return None

    deltas = [closes[i] - closes[i - 1] for i in range(1, len(closes))]
    gains = [max(d, 0.0) for d in deltas]
    losses = [max(-d, 0.0) for d in deltas]

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period
    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def macd(
    closes: Sequence[float],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> Optional[MACDResult]:
    """
    MACD(12, 26, 9).

    La serie EMA lenta es más corta: la rápida se recorta por el
    desfase de longitudes para alinear índice a índice.
    """
    fast_series = ema_series(closes, fast)
    slow_series = ema_series(closes, slow)
    if not slow_series:
        return None

    offset = len(fast_series) - len(slow_series)
    macd_line = [fast_series[i + offset] - slow_series[i] for i in range(len(slow_series))]
    signal_series = ema_series(macd_line, signal)
    if not signal_series:
        return None

    histogram = macd_line[-1] - signal_series[-1]

    trend = _histogram_trend(histogram)
    if len(signal_series) >= 2:
        prev_hist = macd_line[-2] - signal_series[-2]
        if prev_hist <= 0 < histogram:
            trend = "bullish_crossover"
        elif prev_hist >= 0 > histogram:
            trend = "bearish_crossover"

    return MACDResult(
        macd=macd_line[-1],
        signal=signal_series[-1],
        histogram=histogram,
        trend=trend,
    )


def _histogram_trend(histogram: float) -> str:
    if histogram > 0:
        return "bullish"
    if histogram < 0:
        return "bearish"
    return "neutral"


def stochastic(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    k_period: int = 14,
    d_period: int = 3,
) -> Optional[StochasticResult]:
    """
    Estocástico(14, 3).

    %K por índice sobre la ventana móvil de 14 barras (50 si la ventana
    es plana), %D = SMA(3) de %K. Zonas 80/20 con variantes de reversión
    cuando %K cruza %D dentro de la zona extrema.
    """
    n = len(closes)
    if n < k_period + d_period - 1:
        return None

    k_values: List[float] = []
    for i in range(k_period - 1, n):
        hh = max(highs[i - k_period + 1:i + 1])
        ll = min(lows[i - k_period + 1:i + 1])
        if hh == ll:
            k_values.append(50.0)
        else:
            k_values.append((closes[i] - ll) / (hh - ll) * 100.0)

    d_values = [
        sum(k_values[i - d_period + 1:i + 1]) / d_period
        for i in range(d_period - 1, len(k_values))
    ]

    k = k_values[-1]
    d = d_values[-1]
    prev_k = k_values[-2] if len(d_values) >= 2 else None
    prev_d = d_values[-2] if len(d_values) >= 2 else None

    if k > 80:
        if prev_k is not None and prev_k >= prev_d and k < d:
            signal = "bearish_reversal"
        else:
            signal = "overbought"
    elif k < 20:
        if prev_k is not None and prev_k <= prev_d and k > d:
            signal = "bullish_reversal"
        else:
            signal = "oversold"
    else:
        signal = "neutral"

    return StochasticResult(k=k, d=d, signal=signal)


# ════════════════════════════════════════════════════════════════
#  TENDENCIA Y VOLATILIDAD
# ════════════════════════════════════════════════════════════════

def _true_ranges(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
) -> List[float]:
    return [
        max(
            highs[i] - lows[i],
            abs(highs[i] - closes[i - 1]),
            abs(lows[i] - closes[i - 1]),
        )
        for i in range(1, len(closes))
    ]


def adx(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
) -> Optional[ADXResult]:
    """
    ADX(14) con suavizado acumulativo de Wilder.

    sum = sum - sum / period + nuevo  (TR, +DM, -DM)
    DI± = DM suavizado / TR suavizado × 100
    DX  = |+DI − −DI| / (+DI + −DI) × 100

    NOTA: el valor reportado como ADX es el DX final (sin promediar DX
    en el tiempo). Se conserva así por paridad de comportamiento.
    """
    if len(closes) < period * 2:
        return None

    trs = _true_ranges(highs, lows, closes)
    plus_dm: List[float] = []
    minus_dm: List[float] = []
    for i in range(1, len(closes)):
        up = highs[i] - highs[i - 1]
        down = lows[i - 1] - lows[i]
        plus_dm.append(up if up > down and up > 0 else 0.0)
        minus_dm.append(down if down > up and down > 0 else 0.0)

    tr_sum = sum(trs[:period])
    plus_sum = sum(plus_dm[:period])
    minus_sum = sum(minus_dm[:period])
    for i in range(period, len(trs)):
        tr_sum = tr_sum - tr_sum / period + trs[i]
        plus_sum = plus_sum - plus_sum / period + plus_dm[i]
        minus_sum = minus_sum - minus_sum / period + minus_dm[i]

    if tr_sum == 0:
        plus_di = minus_di = 0.0
    else:
        plus_di = plus_sum / tr_sum * 100.0
        minus_di = minus_sum / tr_sum * 100.0

    di_total = plus_di + minus_di
    dx = abs(plus_di - minus_di) / di_total * 100.0 if di_total else 0.0

    if dx < 20:
        trend = "no_trend"
    elif dx < 25:
        trend = "weak"
    elif dx < 50:
        trend = "strong"
    else:
        trend = "very_strong"

    if plus_di > minus_di:
        direction = "bullish"
    elif minus_di > plus_di:
        direction = "bearish"
    else:
        direction = "neutral"

    return ADXResult(
        adx=dx,
        plus_di=plus_di,
        minus_di=minus_di,
        trend=trend,
        direction=direction,
    )


def bollinger(
    closes: Sequence[float],
    period: int = 20,
    multiplier: float = 2.0,
) -> Optional[BollingerResult]:
    """Bandas de Bollinger(20, 2σ) con desviación estándar poblacional."""
    if len(closes) < period:
        return None

    window = closes[-period:]
    middle = sum(window) / period
    variance = sum((c - middle) ** 2 for c in window) / period
    std = variance ** 0.5

    upper = middle + multiplier * std
    lower = middle - multiplier * std
    price = closes[-1]

    percent_b = 0.5 if upper == lower else (price - lower) / (upper - lower)
    bandwidth = (upper - lower) / middle * 100.0 if middle else 0.0
    squeeze = bandwidth < 5

    if percent_b > 1:
        signal = "overbought"
    elif percent_b < 0:
        signal = "oversold"
    elif squeeze:
        signal = "squeeze"
    else:
        signal = "neutral"

    return BollingerResult(
        upper=upper,
        middle=middle,
        lower=lower,
        percent_b=percent_b,
        bandwidth=bandwidth,
        signal=signal,
        squeeze=squeeze,
    )


def atr(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
) -> Optional[ATRResult]:
    """ATR(14) con suavizado de Wilder; volatilidad por ATR % del precio."""
    if len(closes) < period + 1:
        return None

    trs = _true_ranges(highs, lows, closes)
    value = sum(trs[:period]) / period
    for tr in trs[period:]:
        value = (value * (period - 1) + tr) / period

    price = closes[-1]
    atr_percent = value / price * 100.0 if price else 0.0

    if atr_percent < 1:
        volatility = "low"
    elif atr_percent < 2:
        volatility = "medium"
    elif atr_percent < 4:
        volatility = "high"
    else:
        volatility = "extreme"

    return ATRResult(atr=value, atr_percent=atr_percent, volatility=volatility)


# ════════════════════════════════════════════════════════════════
#  VOLUMEN
# ════════════════════════════════════════════════════════════════

def obv(
    closes: Sequence[float],
    volumes: Sequence[float],
    slope_window: int = 10,
) -> Optional[OBVResult]:
    """
    On-Balance Volume.

    Tendencia por el signo de la pendiente de mínimos cuadrados sobre
    los últimos 10 valores, normalizados por el máximo |valor|.
    """
    if len(closes) < slope_window:
        return None

    series = [0.0]
    for i in range(1, len(closes)):
        if closes[i] > closes[i - 1]:
            series.append(series[-1] + volumes[i])
        elif closes[i] < closes[i - 1]:
            series.append(series[-1] - volumes[i])
        else:
            series.append(series[-1])

    window = np.asarray(series[-slope_window:], dtype=float)
    scale = float(np.max(np.abs(window)))
    if scale == 0:
        slope = 0.0
    else:
        slope = float(np.polyfit(np.arange(slope_window), window / scale, 1)[0])

    if slope > 1e-9:
        trend = "bullish"
    elif slope < -1e-9:
        trend = "bearish"
    else:
        trend = "neutral"

    return OBVResult(obv=series[-1], trend=trend, slope=slope)


def volume_profile(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    volumes: Sequence[float],
    zones: int = 10,
    value_area: float = 0.70,
) -> Optional[VolumeProfileResult]:
    """
    Perfil de volumen en 10 zonas de precio.

    Cada vela aporta su volumen a la zona de su precio medio.
    POC = primera zona con volumen máximo. El Value Area crece desde el
    POC hacia el lado adyacente con más volumen (empate → arriba) hasta
    cubrir el 70% del total.
    """
    if not closes:
        return None

    top = max(highs)
    bottom = min(lows)
    span = top - bottom
    if span <= 0:
        return None

    size = span / zones
    buckets = [0.0] * zones
    for h, l, v in zip(highs, lows, volumes):
        idx = int(((h + l) / 2 - bottom) / size)
        buckets[min(max(idx, 0), zones - 1)] += v

    total = sum(buckets)
    if total <= 0:
        return None

    poc_idx = buckets.index(max(buckets))
    lo_idx = hi_idx = poc_idx
    covered = buckets[poc_idx]
    while covered < total * value_area and (lo_idx > 0 or hi_idx < zones - 1):
        above = buckets[hi_idx + 1] if hi_idx < zones - 1 else -1.0
        below = buckets[lo_idx - 1] if lo_idx > 0 else -1.0
        if above >= below:
            hi_idx += 1
            covered += above
        else:
            lo_idx -= 1
            covered += below

    value_area_high = bottom + (hi_idx + 1) * size
    value_area_low = bottom + lo_idx * size
    price = closes[-1]
    if price > value_area_high:
        position = "above_value"
    elif price < value_area_low:
        position = "below_value"
    else:
        position = "in_value"

    return VolumeProfileResult(
        poc=bottom + (poc_idx + 0.5) * size,
        value_area_high=value_area_high,
        value_area_low=value_area_low,
        position=position,
        volume_zones=tuple(
            VolumeZone(
                price_low=bottom + i * size,
                price_high=bottom + (i + 1) * size,
                volume=vol,
                percent=vol / total * 100.0,
            )
            for i, vol in enumerate(buckets)
        ),
    )


# ════════════════════════════════════════════════════════════════
#  RESUMEN
# ════════════════════════════════════════════════════════════════

def summarize(
    rsi_value: Optional[float],
    macd_result: Optional[MACDResult],
    stoch_result: Optional[StochasticResult],
    adx_result: Optional[ADXResult],
    bollinger_result: Optional[BollingerResult],
    ema20: Optional[float],
    ema50: Optional[float],
) -> IndicatorSummary:
    """Votos alcistas vs bajistas; >70% de un lado define el sentimiento."""
    bullish = 0
    bearish = 0

    if rsi_value is not None:
        if rsi_value < 30:
            bullish += 1
        elif rsi_value > 70:
            bearish += 1

    if macd_result is not None:
        if macd_result.trend in ("bullish", "bullish_crossover"):
            bullish += 1
        elif macd_result.trend in ("bearish", "bearish_crossover"):
            bearish += 1

    if stoch_result is not None:
        if stoch_result.signal == "bullish_reversal":
            bullish += 1
        elif stoch_result.signal == "bearish_reversal":
            bearish += 1

    if adx_result is not None and adx_result.adx >= 25:
        if adx_result.direction == "bullish":
            bullish += 1
        elif adx_result.direction == "bearish":
            bearish += 1

    if bollinger_result is not None:
        if bollinger_result.signal == "oversold":
            bullish += 1
        elif bollinger_result.signal == "overbought":
            bearish += 1

    if ema20 is not None and ema50 is not None:
        if ema20 > ema50:
            bullish += 1
        elif ema20 < ema50:
            bearish += 1

    total = bullish + bearish
    if total == 0:
        sentiment = Sentiment.NEUTRAL
        strength = 0
    else:
        if bullish / total > 0.7:
            sentiment = Sentiment.BULLISH
        elif bearish / total > 0.7:
            sentiment = Sentiment.BEARISH
        else:
            sentiment = Sentiment.MIXED
        strength = round(max(bullish, bearish) / total * 100)

    return IndicatorSummary(
        sentiment=sentiment,
        bullish_signals=bullish,
        bearish_signals=bearish,
        strength=strength,
        recommendation=_RECOMMENDATIONS[sentiment],
    )


def calculate_all(candles: Sequence[Candle]) -> Optional[IndicatorSnapshot]:
    """Snapshot completo. None con menos de 30 velas."""
    if len(candles) < MIN_CANDLES:
        return None

    highs = [c.high for c in candles]
    lows = [c.low for c in candles]
    closes = [c.close for c in candles]
    volumes = [c.volume for c in candles]

    rsi_value = rsi(closes)
    macd_result = macd(closes)
    stoch_result = stochastic(highs, lows, closes)
    adx_result = adx(highs, lows, closes)
    bollinger_result = bollinger(closes)
    ema20 = ema(closes, 20)
    ema50 = ema(closes, 50)

    return IndicatorSnapshot(
        rsi=rsi_value,
        macd=macd_result,
        stochastic=stoch_result,
        adx=adx_result,
        bollinger=bollinger_result,
        atr=atr(highs, lows, closes),
        obv=obv(closes, volumes),
        volume_profile=volume_profile(highs, lows, closes, volumes),
        elliott_wave=analyze_waves(highs, lows),
        ema20=ema20,
        ema50=ema50,
        summary=summarize(
            rsi_value,
            macd_result,
            stoch_result,
            adx_result,
            bollinger_result,
            ema20,
            ema50,
        ),
    )
