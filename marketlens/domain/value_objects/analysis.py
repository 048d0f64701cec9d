"""
MarketLens – Domain Value Object: SeriesAnalysis
==================================================
Último resultado de análisis (patrones + decisión + indicadores)
cacheado por clave. Se reemplaza entero en cada recálculo.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from marketlens.domain.entities.decision import Decision
from marketlens.domain.entities.pattern import Pattern
from marketlens.domain.value_objects.indicators import IndicatorSnapshot


@dataclass(frozen=True, slots=True)
class SeriesAnalysis:
    patterns: tuple[Pattern, ...]
    decision: Decision
    indicators: Optional[IndicatorSnapshot] = None

    def to_dict(self) -> dict:
        return {
            "patterns": [p.to_dict() for p in self.patterns],
            "decision": self.decision.to_dict(),
            "indicators": self.indicators.to_dict() if self.indicators else None,
        }
