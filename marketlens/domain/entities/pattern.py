"""
MarketLens – Domain Entity: Pattern
=====================================
Patrón de velas / gráfico detectado sobre la última vela de una serie.

Se produce de nuevo en cada análisis; solo se conserva el último
resultado por (instrumento, timeframe).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class PatternType(str, Enum):
    """Sesgo que aporta el patrón a la decisión."""
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"
    CONFIRMATION = "confirmation"  # e.g. volumen alto
    WARNING = "warning"            # e.g. volumen bajo, patrón formándose


class PatternStrength(str, Enum):
    WEAK = "weak"
    MEDIUM = "medium"
    STRONG = "strong"


@dataclass(frozen=True, slots=True)
class Pattern:
    """Registro {name, type, strength, description}."""

    name: str
    type: PatternType
    strength: PatternStrength
    description: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.type.value,
            "strength": self.strength.value,
            "description": self.description,
        }
