"""
MarketLens – Domain Service: Decision Engine
==============================================
Sintetiza una Decision a partir de patrones + vela + serie.

Función pura: mismas entradas → misma Decision. Usa el snapshot de
indicadores provisto o lo calcula desde la serie (≥30 velas); sin él decide
solo con patrones.

REGLAS:
- LONG:  fuerte alcista  ó  medio alcista + (volumen ó sentimiento BULLISH)
- SHORT: simétrico (se evalúa después de LONG)
- Entry:   extremo de la vela ± 1% del rango
- Stop:    extremo opuesto ∓ 1.5×ATR (sin ATR: 15% del rango)
- Targets: entry ± riesgo × {1.5, 2.5, 4}
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

from marketlens.domain.entities.candle import Candle
from marketlens.domain.entities.decision import (
    Action,
    Confidence,
    Decision,
    IndicatorSignals,
)
from marketlens.domain.entities.pattern import Pattern, PatternStrength, PatternType
from marketlens.domain.services.indicator_calculator import calculate_all
from marketlens.domain.value_objects.indicators import IndicatorSnapshot, Sentiment

ENTRY_BUFFER = 0.01
STOP_RANGE_FRACTION = 0.15
STOP_ATR_MULTIPLIER = 1.5
TARGET_MULTIPLIERS = (1.5, 2.5, 4.0)
RISK_REWARD_LABEL = "1:2.5"
PRICE_DECIMALS = 8

_LEVELS = (Confidence.LOW, Confidence.MEDIUM, Confidence.HIGH)

# Marcador: snapshot no provisto, calcularlo desde la serie
_FROM_SERIES: Any = object()


def decide(
    patterns: Sequence[Pattern],
    candle: Candle,
    candles: Sequence[Candle],
    indicators: Optional[IndicatorSnapshot] = _FROM_SERIES,
) -> Decision:
    """
    Genera la decisión para la última vela.

    Args:
        patterns: Patrones detectados sobre `candle`
        candle: Vela evaluada (normalmente candles[-1])
        candles: Serie completa, para indicadores
        indicators: Snapshot ya calculado (None = sin indicadores);
            si se omite se calcula desde `candles`

    Returns:
        Decision nueva e inmutable
    """
    if indicators is _FROM_SERIES:
        indicators = calculate_all(candles)
    signals = _indicator_signals(indicators)
    sentiment = indicators.summary.sentiment if indicators else None

    if not patterns:
        if sentiment is None or sentiment == Sentiment.NEUTRAL:
            return Decision(
                action=Action.WAIT,
                confidence=Confidence.NONE,
                reasoning=("No clear pattern detected", "Wait for setup"),
                indicator_signals=signals,
            )
        return Decision(
            action=Action.WAIT,
            confidence=Confidence.LOW,
            reasoning=(
                "No clear pattern detected",
                f"Indicators lean {sentiment.value} ({indicators.summary.strength}%)",
                "Wait for setup",
            ),
            indicator_signals=signals,
        )

    has_volume = any(p.name == "High Volume" for p in patterns)

    for action, kind, agree, conflict in (
        (Action.LONG, PatternType.BULLISH, Sentiment.BULLISH, Sentiment.BEARISH),
        (Action.SHORT, PatternType.BEARISH, Sentiment.BEARISH, Sentiment.BULLISH),
    ):
        strong = _has(patterns, kind, PatternStrength.STRONG)
        medium = _has(patterns, kind, PatternStrength.MEDIUM)
        agreement = sentiment == agree
        if strong or (medium and (has_volume or agreement)):
            return _trade(
                action,
                kind,
                patterns,
                candle,
                indicators,
                signals,
                strong=strong,
                has_volume=has_volume,
                agreement=agreement,
                conflict=sentiment == conflict,
            )

    return Decision(
        action=Action.WAIT,
        confidence=Confidence.LOW,
        reasoning=(
            "Pattern detected but not strong enough",
            "Wait for confirmation or stronger setup",
        ),
        indicator_signals=signals,
    )


def _has(patterns: Sequence[Pattern], kind: PatternType, strength: PatternStrength) -> bool:
    return any(p.type == kind and p.strength == strength for p in patterns)


def _indicator_signals(indicators: Optional[IndicatorSnapshot]) -> Optional[IndicatorSignals]:
    if indicators is None:
        return None
    summary = indicators.summary
    return IndicatorSignals(
        sentiment=summary.sentiment.value,
        bullish_signals=summary.bullish_signals,
        bearish_signals=summary.bearish_signals,
        rsi=indicators.rsi,
        macd_trend=indicators.macd.trend if indicators.macd else None,
    )


def _trade(
    action: Action,
    kind: PatternType,
    patterns: Sequence[Pattern],
    candle: Candle,
    indicators: Optional[IndicatorSnapshot],
    signals: Optional[IndicatorSignals],
    *,
    strong: bool,
    has_volume: bool,
    agreement: bool,
    conflict: bool,
) -> Decision:
    long = action == Action.LONG
    rng = candle.range
    atr = indicators.atr.atr if indicators and indicators.atr else None
    pad = atr * STOP_ATR_MULTIPLIER if atr else rng * STOP_RANGE_FRACTION

    if long:
        entry = candle.high + rng * ENTRY_BUFFER
        stop = candle.low - pad
        risk = entry - stop
        targets = [entry + risk * m for m in TARGET_MULTIPLIERS]
    else:
        entry = candle.low - rng * ENTRY_BUFFER
        stop = candle.high + pad
        risk = stop - entry
        targets = [entry - risk * m for m in TARGET_MULTIPLIERS]

    # Escalado: fuerte=2, volumen=1, acuerdo=1; conflicto baja un nivel
    level = (2 if strong else 0) + int(has_volume) + int(agreement) - 1
    level = min(max(level, 0), len(_LEVELS) - 1)
    if conflict:
        level = max(level - 1, 0)

    leading = next(p.description for p in patterns if p.type == kind)
    reasoning: List[str] = [
        leading,
        "✓ Volume confirms the move" if has_volume else "⚠ Wait for volume confirmation",
        "Entry: Break above candle high" if long else "Entry: Break below candle low",
    ]
    if indicators is not None:
        reasoning.extend(_indicator_notes(indicators, long))
    risk_pct = risk / entry * 100 if entry else 0.0
    reasoning.append(f"Risk: {risk_pct:.2f}% to stop loss")

    return Decision(
        action=action,
        confidence=_LEVELS[level],
        entry=round(entry, PRICE_DECIMALS),
        stop_loss=round(stop, PRICE_DECIMALS),
        target1=round(targets[0], PRICE_DECIMALS),
        target2=round(targets[1], PRICE_DECIMALS),
        target3=round(targets[2], PRICE_DECIMALS),
        risk_reward=RISK_REWARD_LABEL,
        reasoning=tuple(reasoning),
        indicator_signals=signals,
    )


def _indicator_notes(indicators: IndicatorSnapshot, long: bool) -> List[str]:
    notes: List[str] = []

    if indicators.rsi is not None:
        value = indicators.rsi
        if value > 70:
            notes.append(f"RSI {value:.1f} - overbought")
        elif value < 30:
            notes.append(f"RSI {value:.1f} - oversold")
        else:
            notes.append(f"RSI {value:.1f} - neutral momentum")

    if indicators.macd is not None:
        notes.append(f"MACD {indicators.macd.trend.replace('_', ' ')}")

    if indicators.ema20 is not None and indicators.ema50 is not None:
        uptrend = indicators.ema20 > indicators.ema50
        if uptrend == long:
            notes.append("EMA20/EMA50 trend aligned with the trade")
        else:
            notes.append("EMA20/EMA50 trend against the trade")

    summary = indicators.summary
    notes.append(
        f"Signals: {summary.bullish_signals} bullish vs {summary.bearish_signals} bearish"
    )
    return notes
