"""
MarketLens – Domain Entity: Decision
======================================
Decisión de trading inmutable generada por el DecisionEngine.

DECISIONES DE DISEÑO:
- frozen=True → cada pasada de análisis produce una Decision NUEVA;
  nadie altera una decisión ya publicada.
- reasoning es tuple (inmutable y ordenado) → el orden de las razones
  es determinista y forma parte del contrato con el frontend.

CAMPOS:
- action:            WAIT | LONG | SHORT
- confidence:        none | low | medium | high
- entry:             Nivel de ruptura (±1% del rango de la vela)
- stop_loss:         Extremo opuesto acolchado (1.5×ATR o 15% del rango)
- target1/2/3:       entry ± riesgo × {1.5, 2.5, 4}
- risk_reward:       Etiqueta fija "1:2.5"
- reasoning:         Razones legibles en orden
- indicator_signals: Resumen de indicadores usado (None sin historia)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Action(str, Enum):
    WAIT = "WAIT"
    LONG = "LONG"
    SHORT = "SHORT"


class Confidence(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True, slots=True)
class IndicatorSignals:
    """Votos de indicadores que acompañan a la decisión."""

    sentiment: str
    bullish_signals: int
    bearish_signals: int
    rsi: Optional[float] = None
    macd_trend: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "sentiment": self.sentiment,
            "bullishSignals": self.bullish_signals,
            "bearishSignals": self.bearish_signals,
            "rsi": self.rsi,
            "macdTrend": self.macd_trend,
        }


@dataclass(frozen=True, slots=True)
class Decision:
    """Decisión derivada, nunca mutada tras su creación."""

    action: Action
    confidence: Confidence
    entry: Optional[float] = None
    stop_loss: Optional[float] = None
    target1: Optional[float] = None
    target2: Optional[float] = None
    target3: Optional[float] = None
    risk_reward: Optional[str] = None
    reasoning: tuple[str, ...] = ()
    indicator_signals: Optional[IndicatorSignals] = None

    def to_dict(self) -> dict:
        """Serialización para API / WebSocket."""
        return {
            "action": self.action.value,
            "confidence": self.confidence.value,
            "entry": self.entry,
            "stopLoss": self.stop_loss,
            "target1": self.target1,
            "target2": self.target2,
            "target3": self.target3,
            "riskReward": self.risk_reward,
            "reasoning": list(self.reasoning),
            "indicatorSignals": (
                self.indicator_signals.to_dict() if self.indicator_signals else None
            ),
        }
