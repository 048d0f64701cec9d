"""Domain services - Pure analysis functions with no I/O."""
from marketlens.domain.services import (
    wave_analyzer,
    indicator_calculator,
    pattern_recognizer,
    decision_engine,
)

__all__ = [
    "wave_analyzer",
    "indicator_calculator",
    "pattern_recognizer",
    "decision_engine",
]
