"""
MarketLens – Domain Service: Wave Analyzer
============================================
Lectura best-effort de ondas de Elliott sobre pivotes de swing.

ALGORITMO:
1. Pivotes con ventana de fuerza ±5 velas.
2. Secuencia alternada high/low (pivotes consecutivos del mismo tipo
   se fusionan conservando el más extremo).
3. Plantilla impulsiva de 5 ondas sobre los últimos 6 (o 5) pivotes:
   - onda 2 no retrocede toda la onda 1
   - onda 3 supera el extremo de la onda 1
   - onda 4 no entra en territorio de la onda 1
4. Plantilla correctiva ABC sobre los últimos 4 pivotes.
5. Sin coincidencia → "indeterminate" con confianza baja.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from marketlens.domain.value_objects.indicators import ElliottWaveResult, WavePoint

PIVOT_STRENGTH = 5
FIB_RETRACE = 0.618
FIB_SHALLOW = 0.382


def find_pivots(
    highs: Sequence[float],
    lows: Sequence[float],
    strength: int = PIVOT_STRENGTH,
) -> List[WavePoint]:
    """
    Pivotes de swing: estricto a la izquierda, >= / <= a la derecha.
    """
    points: List[WavePoint] = []
    for i in range(strength, len(highs) - strength):
        left_h = highs[i - strength:i]
        right_h = highs[i + 1:i + strength + 1]
        if all(highs[i] > h for h in left_h) and all(highs[i] >= h for h in right_h):
            points.append(WavePoint(index=i, price=highs[i], kind="high"))

        left_l = lows[i - strength:i]
        right_l = lows[i + 1:i + strength + 1]
        if all(lows[i] < l for l in left_l) and all(lows[i] <= l for l in right_l):
            points.append(WavePoint(index=i, price=lows[i], kind="low"))
    return points


def alternate(points: Sequence[WavePoint]) -> List[WavePoint]:
    merged: List[WavePoint] = []
    for p in points:
        if merged and merged[-1].kind == p.kind:
            last = merged[-1]
            if (p.kind == "high" and p.price > last.price) or (
                p.kind == "low" and p.price < last.price
            ):
                merged[-1] = p
            continue
        merged.append(p)
    return merged


def _match_impulse(p: Sequence[WavePoint]) -> Optional[ElliottWaveResult]:
    """5 pivotes = onda 5 en curso; 6 pivotes = impulso completo."""
    if len(p) < 5:
        return None

    bullish = p[0].kind == "low"
    sign = 1.0 if bullish else -1.0
    v = [sign * x.price for x in p]

    # Normalizado a impulso alcista: v[0] low, v[1] high, ...
    if not (v[1] > v[0]):
        return None
    if not (v[2] > v[0]):
        return None
    if not (v[3] > v[1]):
        return None
    if not (v[4] > v[1]):
        return None

    direction = "bullish" if bullish else "bearish"
    if len(p) >= 6:
        if not (v[5] > v[3]):
            return None
        projection = sign * (v[5] - FIB_SHALLOW * (v[5] - v[0]))
        return ElliottWaveResult(
            pattern="impulse",
            direction=direction,
            wave="5",
            points=tuple(p[:6]),
            projection=projection,
            confidence="high",
        )

    # Onda 5 ≈ onda 1 proyectada desde el fin de la onda 4
    projection = sign * (v[4] + (v[1] - v[0]))
    return ElliottWaveResult(
        pattern="impulse",
        direction=direction,
        wave="4",
        points=tuple(p[:5]),
        projection=projection,
        confidence="medium",
    )


def _match_corrective(p: Sequence[WavePoint]) -> Optional[ElliottWaveResult]:
    """ABC: A desde el origen, B retrocede parcialmente, C supera el fin de A."""
    if len(p) < 4:
        return None

    down = p[0].kind == "high"
    sign = 1.0 if down else -1.0
    v = [sign * x.price for x in p]

    # Normalizado a corrección bajista: v[0] origen, v[1] fin de A, ...
    a_len = v[0] - v[1]
    if a_len <= 0:
        return None
    if not (v[1] < v[2] < v[0]):
        return None
    if not (v[3] < v[1]):
        return None

    c_len = v[2] - v[3]
    projection = sign * (v[3] + FIB_RETRACE * (v[0] - v[3]))
    return ElliottWaveResult(
        pattern="corrective",
        direction="bearish" if down else "bullish",
        wave="C",
        points=tuple(p[:4]),
        projection=projection,
        confidence="medium" if c_len >= a_len * FIB_RETRACE else "low",
    )


def analyze_waves(
    highs: Sequence[float],
    lows: Sequence[float],
) -> Optional[ElliottWaveResult]:
    """
    Devuelve None si la serie no admite ningún pivote (<11 velas).
    """
    if len(highs) < PIVOT_STRENGTH * 2 + 1:
        return None

    pivots = alternate(find_pivots(highs, lows))

    if len(pivots) >= 6:
        result = _match_impulse(pivots[-6:])
        if result:
            return result
    if len(pivots) >= 5:
        result = _match_impulse(pivots[-5:])
        if result:
            return result
    if len(pivots) >= 4:
        result = _match_corrective(pivots[-4:])
        if result:
            return result

    return ElliottWaveResult(
        pattern="indeterminate",
        direction="neutral",
        wave=None,
        points=tuple(pivots[-5:]),
        projection=None,
        confidence="low",
    )
