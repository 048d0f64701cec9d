"""
MarketLens – Domain Service: Pattern Recognizer
=================================================
Detección de patrones de velas y de gráfico sobre la ÚLTIMA vela.

Funciones puras: reciben la serie completa (contexto histórico) y
devuelven una lista ordenada de Pattern. Las velas anteriores son solo
contexto; no se analizan por separado.

ORDEN DE EVALUACIÓN (determinista):
1. Forma de vela     (Doji, Hammer, Star, Marubozu, ...)  – requiere rango > 0
2. Multi-vela        (Engulfing, Morning/Evening Star, Tweezer, ...)
3. Volumen           (High / Low Volume)
4. Gráfico           (Double Top/Bottom, H&S, Wedge, V-Reversal)

Un detector sin historia suficiente simplemente no emite nada.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from marketlens.domain.entities.candle import Candle
from marketlens.domain.entities.pattern import Pattern, PatternStrength, PatternType

BULLISH = PatternType.BULLISH
BEARISH = PatternType.BEARISH
NEUTRAL = PatternType.NEUTRAL
CONFIRMATION = PatternType.CONFIRMATION
WARNING = PatternType.WARNING

WEAK = PatternStrength.WEAK
MEDIUM = PatternStrength.MEDIUM
STRONG = PatternStrength.STRONG

# Ventanas de los detectores de gráfico
DOUBLE_LOOKBACK = 30
DOUBLE_MIN_CANDLES = 12
HS_LOOKBACK = 40
HS_MIN_CANDLES = 20
WEDGE_LOOKBACK = 20
V_LOOKBACK = 20
PIVOT_STRENGTH = 2


def _p(name: str, kind: PatternType, strength: PatternStrength, description: str) -> Pattern:
    return Pattern(name=name, type=kind, strength=strength, description=description)


# ════════════════════════════════════════════════════════════════
#  API PÚBLICA
# ════════════════════════════════════════════════════════════════

def analyze(candles: Sequence[Candle], index: Optional[int] = None) -> List[Pattern]:
    """
    Patrones de la vela en `index` (por defecto la última).

    Args:
        candles: Serie ordenada ascendente por open_time
        index: Posición de la vela a evaluar

    Returns:
        Lista ordenada de patrones (vacía si no hay ninguno)
    """
    if not candles:
        return []
    if index is None:
        index = len(candles) - 1

    series = candles[:index + 1]
    candle = series[-1]
    patterns: List[Pattern] = []

    if candle.range > 0:
        patterns.extend(_single_candle(candle, series))
    patterns.extend(_multi_candle(candle, series))
    patterns.extend(_volume(candle, series))
    patterns.extend(_double_top_bottom(series))
    patterns.extend(_head_and_shoulders(series))
    patterns.extend(_wedge(series))
    patterns.extend(_v_reversal(series))
    return patterns


# ════════════════════════════════════════════════════════════════
#  FORMA DE VELA
# ════════════════════════════════════════════════════════════════

def _single_candle(c: Candle, series: Sequence[Candle]) -> List[Pattern]:
    out: List[Pattern] = []
    body, rng = c.body, c.range
    upper, lower = c.upper_wick, c.lower_wick
    index = len(series) - 1

    # Doji
    if body < rng * 0.1:
        if upper > lower * 2.5:
            out.append(_p("Gravestone Doji", BEARISH, MEDIUM,
                          "Strong rejection from highs - bearish reversal signal"))
        elif lower > upper * 2.5:
            out.append(_p("Dragonfly Doji", BULLISH, MEDIUM,
                          "Strong rejection from lows - bullish reversal signal"))
        else:
            out.append(_p("Doji", NEUTRAL, WEAK,
                          "Market indecision - wait for confirmation"))

    # Hammer / Hanging Man
    if lower > body * 2 and upper < body * 0.5 and body > rng * 0.1 and index >= 3:
        if c.close < _avg_close(series[index - 3:index]):
            out.append(_p("Hammer", BULLISH, STRONG,
                          "Bullish reversal - buyers defended the low aggressively"))
        else:
            out.append(_p("Hanging Man", BEARISH, MEDIUM,
                          "Warning signal after uptrend - potential reversal"))

    # Shooting Star / Inverted Hammer
    if upper > body * 2 and lower < body * 0.5 and body > rng * 0.1 and index >= 3:
        if c.close > _avg_close(series[index - 3:index]):
            out.append(_p("Shooting Star", BEARISH, STRONG,
                          "Bearish reversal - sellers rejected the high aggressively"))
        else:
            out.append(_p("Inverted Hammer", BULLISH, MEDIUM,
                          "Potential bullish reversal after downtrend"))

    # Marubozu
    if upper < rng * 0.05 and lower < rng * 0.05 and body > rng * 0.9:
        if c.is_bullish:
            out.append(_p("Bullish Marubozu", BULLISH, STRONG,
                          "Strong buying pressure - bulls in full control"))
        else:
            out.append(_p("Bearish Marubozu", BEARISH, STRONG,
                          "Strong selling pressure - bears in full control"))

    return out


def _avg_close(candles: Sequence[Candle]) -> float:
    return sum(c.close for c in candles) / len(candles)


# ════════════════════════════════════════════════════════════════
#  MULTI-VELA
# ════════════════════════════════════════════════════════════════

def _multi_candle(c: Candle, series: Sequence[Candle]) -> List[Pattern]:
    out: List[Pattern] = []
    index = len(series) - 1

    if index >= 1:
        prev = series[index - 1]

        # Engulfing
        if c.body > prev.body * 1.3:
            if c.is_bullish and not prev.is_bullish and c.open <= prev.close and c.close >= prev.open:
                out.append(_p("Bullish Engulfing", BULLISH, STRONG,
                              "Strong reversal signal - buyers overwhelmed sellers"))
            if not c.is_bullish and prev.is_bullish and c.open >= prev.close and c.close <= prev.open:
                out.append(_p("Bearish Engulfing", BEARISH, STRONG,
                              "Strong reversal signal - sellers overwhelmed buyers"))

    if index >= 2:
        first, middle = series[index - 2], series[index - 1]

        # Morning / Evening Star
        if (first.is_bearish and middle.body < first.body * 0.3
                and c.is_bullish and c.body > first.body * 0.5):
            out.append(_p("Morning Star", BULLISH, STRONG,
                          "3-candle bullish reversal - high probability setup"))
        if (first.is_bullish and middle.body < first.body * 0.3
                and not c.is_bullish and c.body > first.body * 0.5):
            out.append(_p("Evening Star", BEARISH, STRONG,
                          "3-candle bearish reversal - high probability setup"))

    if index >= 1 and c.range > 0:
        prev = series[index - 1]
        tolerance = c.range * 0.1

        # Tweezer
        if prev.is_bullish and c.is_bearish and abs(c.high - prev.high) <= tolerance:
            out.append(_p("Tweezer Top", BEARISH, MEDIUM,
                          "Matching highs rejected twice - bearish reversal"))
        if prev.is_bearish and c.is_bullish and abs(c.low - prev.low) <= tolerance:
            out.append(_p("Tweezer Bottom", BULLISH, MEDIUM,
                          "Matching lows defended twice - bullish reversal"))

        # Piercing Line / Dark Cloud Cover
        prev_mid = (prev.open + prev.close) / 2
        if (prev.is_bearish and c.is_bullish and c.open < prev.close
                and prev_mid < c.close < prev.open):
            out.append(_p("Piercing Line", BULLISH, MEDIUM,
                          "Buyers pushed back above the prior midpoint - bullish reversal"))
        if (prev.is_bullish and c.is_bearish and c.open > prev.close
                and prev.open < c.close < prev_mid):
            out.append(_p("Dark Cloud Cover", BEARISH, MEDIUM,
                          "Sellers pushed back below the prior midpoint - bearish reversal"))

    if index >= 3:
        last3 = series[index - 2:index + 1]
        closes = [x.close for x in series[index - 3:index + 1]]

        # Three White Soldiers / Three Black Crows
        if all(x.is_bullish for x in last3) and all(closes[i] > closes[i - 1] for i in range(1, 4)):
            out.append(_p("Three White Soldiers", BULLISH, STRONG,
                          "Three consecutive strong closes higher - sustained buying"))
        if all(x.is_bearish for x in last3) and all(closes[i] < closes[i - 1] for i in range(1, 4)):
            out.append(_p("Three Black Crows", BEARISH, STRONG,
                          "Three consecutive strong closes lower - sustained selling"))

    return out


# ════════════════════════════════════════════════════════════════
#  VOLUMEN
# ════════════════════════════════════════════════════════════════

def _volume(c: Candle, series: Sequence[Candle]) -> List[Pattern]:
    index = len(series) - 1
    if index < 5:
        return []

    avg = sum(x.volume for x in series[index - 5:index]) / 5
    if avg <= 0:
        return []

    ratio = c.volume / avg
    if ratio > 2:
        return [_p("High Volume", CONFIRMATION, STRONG,
                   f"Volume {ratio:.1f}x average - confirms the move")]
    if ratio < 0.5:
        return [_p("Low Volume", WARNING, WEAK,
                   f"Volume {ratio:.1f}x average - weak participation")]
    return []


# ════════════════════════════════════════════════════════════════
#  GRÁFICO
# ════════════════════════════════════════════════════════════════

def _pivot_highs(series: Sequence[Candle], start: int) -> List[int]:
    k = PIVOT_STRENGTH
    highs = [c.high for c in series]
    return [
        i for i in range(max(start, k), len(series) - k)
        if all(highs[i] > highs[j] for j in range(i - k, i))
        and all(highs[i] >= highs[j] for j in range(i + 1, i + k + 1))
    ]


def _pivot_lows(series: Sequence[Candle], start: int) -> List[int]:
    k = PIVOT_STRENGTH
    lows = [c.low for c in series]
    return [
        i for i in range(max(start, k), len(series) - k)
        if all(lows[i] < lows[j] for j in range(i - k, i))
        and all(lows[i] <= lows[j] for j in range(i + 1, i + k + 1))
    ]


def _within(a: float, b: float, tolerance: float) -> bool:
    top = max(a, b)
    return top > 0 and abs(a - b) / top <= tolerance


def _double_top_bottom(series: Sequence[Candle]) -> List[Pattern]:
    """
    Dos extremos dentro de 30 velas, a ≤2% entre sí y ≥5 velas de
    separación. Neckline = valle (pico) entre ambos.
    """
    n = len(series)
    if n < DOUBLE_MIN_CANDLES:
        return []

    out: List[Pattern] = []
    start = n - DOUBLE_LOOKBACK
    close = series[-1].close

    peaks = _pivot_highs(series, start)
    if len(peaks) >= 2:
        a, b = peaks[-2], peaks[-1]
        if b - a >= 5 and _within(series[a].high, series[b].high, 0.02):
            neckline = min(c.low for c in series[a + 1:b])
            if close < neckline:
                out.append(_p("Double Top", BEARISH, STRONG,
                              "Two equal highs rejected and neckline broken - bearish reversal"))
            elif close <= neckline * 1.02:
                out.append(_p("Double Top (Forming)", WARNING, MEDIUM,
                              "Two equal highs - price testing the neckline"))

    troughs = _pivot_lows(series, start)
    if len(troughs) >= 2:
        a, b = troughs[-2], troughs[-1]
        if b - a >= 5 and _within(series[a].low, series[b].low, 0.02):
            neckline = max(c.high for c in series[a + 1:b])
            if close > neckline:
                out.append(_p("Double Bottom", BULLISH, STRONG,
                              "Two equal lows defended and neckline broken - bullish reversal"))
            elif close >= neckline * 0.98:
                out.append(_p("Double Bottom (Forming)", WARNING, MEDIUM,
                              "Two equal lows - price testing the neckline"))

    return out


def _head_and_shoulders(series: Sequence[Candle]) -> List[Pattern]:
    """
    Tres picos (valles) donde el central supera a ambos y los hombros
    están a ≤5% entre sí. Neckline = máx de los valles (mín de los picos)
    que los conectan.
    """
    n = len(series)
    if n < HS_MIN_CANDLES:
        return []

    out: List[Pattern] = []
    start = n - HS_LOOKBACK
    close = series[-1].close

    peaks = _pivot_highs(series, start)
    if len(peaks) >= 3:
        ls, hd, rs = peaks[-3:]
        left, head, right = series[ls].high, series[hd].high, series[rs].high
        if head > left and head > right and _within(left, right, 0.05):
            neckline = max(
                min(c.low for c in series[ls + 1:hd]),
                min(c.low for c in series[hd + 1:rs]),
            )
            if close < neckline:
                out.append(_p("Head & Shoulders", BEARISH, STRONG,
                              "Neckline broken after lower right shoulder - bearish reversal"))
            elif close <= neckline * 1.02:
                out.append(_p("Head & Shoulders (Forming)", WARNING, MEDIUM,
                              "Right shoulder in place - watch the neckline"))

    troughs = _pivot_lows(series, start)
    if len(troughs) >= 3:
        ls, hd, rs = troughs[-3:]
        left, head, right = series[ls].low, series[hd].low, series[rs].low
        if head < left and head < right and _within(left, right, 0.05):
            neckline = min(
                max(c.high for c in series[ls + 1:hd]),
                max(c.high for c in series[hd + 1:rs]),
            )
            if close > neckline:
                out.append(_p("Inverse Head & Shoulders", BULLISH, STRONG,
                              "Neckline broken after higher right shoulder - bullish reversal"))
            elif close >= neckline * 0.98:
                out.append(_p("Inverse Head & Shoulders (Forming)", WARNING, MEDIUM,
                              "Right shoulder in place - watch the neckline"))

    return out


def _wedge(series: Sequence[Candle]) -> List[Pattern]:
    """
    Regresión lineal de máximos y mínimos en 20 velas. Misma pendiente
    en ambas líneas + canal convergente (ancho final < 70% del inicial).
    """
    if len(series) < WEDGE_LOOKBACK:
        return []

    window = series[-WEDGE_LOOKBACK:]
    x = np.arange(WEDGE_LOOKBACK)
    high_slope, high_icpt = np.polyfit(x, [c.high for c in window], 1)
    low_slope, low_icpt = np.polyfit(x, [c.low for c in window], 1)

    last = WEDGE_LOOKBACK - 1
    upper_end = high_slope * last + high_icpt
    lower_end = low_slope * last + low_icpt
    width_start = high_icpt - low_icpt
    width_end = upper_end - lower_end
    if width_start <= 0 or width_end <= 0 or width_end >= width_start * 0.7:
        return []

    close = window[-1].close
    if high_slope > 0 and low_slope > 0 and close <= lower_end * 1.01:
        return [_p("Rising Wedge", BEARISH, MEDIUM,
                   "Converging uptrend losing momentum - bearish breakdown risk")]
    if high_slope < 0 and low_slope < 0 and close >= upper_end * 0.99:
        return [_p("Falling Wedge", BULLISH, MEDIUM,
                   "Converging downtrend losing momentum - bullish breakout setup")]
    return []


def _v_reversal(series: Sequence[Candle]) -> List[Pattern]:
    """
    Extremo único dentro de 20 velas con movimiento previo >5%,
    retroceso ≥70% y volumen en el pivote ≥1.5× la media.
    """
    if len(series) < V_LOOKBACK:
        return []

    window = series[-V_LOOKBACK:]
    close = window[-1].close
    avg_volume = sum(c.volume for c in window) / V_LOOKBACK
    out: List[Pattern] = []

    lows = [c.low for c in window]
    i = lows.index(min(lows))
    if 0 < i < V_LOOKBACK - 1:
        bottom = lows[i]
        prior_high = max(c.high for c in window[:i + 1])
        move = prior_high - bottom
        if (bottom > 0 and move > 0
                and move / prior_high > 0.05
                and (close - bottom) / move >= 0.7
                and (close - bottom) / bottom > 0.05
                and window[i].volume >= avg_volume * 1.5):
            out.append(_p("V-Bottom Reversal", BULLISH, STRONG,
                          "Sharp selloff fully reclaimed on heavy volume - bullish reversal"))

    highs = [c.high for c in window]
    i = highs.index(max(highs))
    if 0 < i < V_LOOKBACK - 1:
        top = highs[i]
        prior_low = min(c.low for c in window[:i + 1])
        move = top - prior_low
        if (prior_low > 0 and move > 0
                and move / prior_low > 0.05
                and (top - close) / move >= 0.7
                and (top - close) / top > 0.05
                and window[i].volume >= avg_volume * 1.5):
            out.append(_p("V-Top Reversal", BEARISH, STRONG,
                          "Sharp rally fully given back on heavy volume - bearish reversal"))

    return out
