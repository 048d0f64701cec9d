"""
MarketLens – Application Service: Series Analysis
===================================================
Recalcula patrones, decisión e indicadores sobre un snapshot de serie.

UMBRALES:
- < min_patterns velas (3)    → sin análisis (None)
- ≥ min_patterns              → patrones + decisión
- ≥ min_indicators velas (30) → + snapshot de indicadores
"""

from __future__ import annotations

from typing import Optional, Sequence

from marketlens.domain.entities.candle import Candle
from marketlens.domain.services import decision_engine, pattern_recognizer
from marketlens.domain.services.indicator_calculator import calculate_all
from marketlens.domain.value_objects.analysis import SeriesAnalysis


def analyze_series(
    candles: Sequence[Candle],
    min_patterns: int = 3,
    min_indicators: int = 30,
) -> Optional[SeriesAnalysis]:
    if len(candles) < min_patterns:
        return None

    # Un solo snapshot por serie, compartido con la decisión
    indicators = calculate_all(candles) if len(candles) >= min_indicators else None
    patterns = pattern_recognizer.analyze(candles)
    decision = decision_engine.decide(patterns, candles[-1], candles, indicators=indicators)

    return SeriesAnalysis(
        patterns=tuple(patterns),
        decision=decision,
        indicators=indicators,
    )
