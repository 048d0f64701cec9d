"""Domain entities."""
from marketlens.domain.entities.candle import Candle
from marketlens.domain.entities.pattern import Pattern, PatternType, PatternStrength
from marketlens.domain.entities.decision import Action, Confidence, Decision, IndicatorSignals

__all__ = [
    "Candle",
    "Pattern",
    "PatternType",
    "PatternStrength",
    "Action",
    "Confidence",
    "Decision",
    "IndicatorSignals",
]
