"""
MarketLens – Application DTO: Candle Update
=============================================
Payload publicado en el tópico "candle_update" y enviado al cliente.

Los DTOs sirven como contratos entre capas.
Son estructuras simples sin lógica de negocio.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from marketlens.domain.entities.candle import Candle
from marketlens.domain.value_objects.analysis import SeriesAnalysis
from marketlens.domain.value_objects.tick import SeriesKey


@dataclass(frozen=True)
class CandleUpdateDTO:
    """Vela actualizada + último análisis + cola de la serie."""

    key: SeriesKey
    candle: Candle
    recent: tuple[Candle, ...]
    analysis: Optional[SeriesAnalysis] = None

    def to_dict(self) -> Dict[str, Any]:
        analysis = self.analysis
        return {
            "instrument": self.key.instrument,
            "timeframe": self.key.timeframe,
            "candle": self.candle.to_dict(),
            "patterns": [p.to_dict() for p in analysis.patterns] if analysis else [],
            "decision": analysis.decision.to_dict() if analysis else None,
            "indicators": (
                analysis.indicators.to_dict() if analysis and analysis.indicators else None
            ),
            "allCandles": [c.to_dict() for c in self.recent],
        }
