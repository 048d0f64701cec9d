import pytest

from marketlens.domain.entities.decision import Action, Confidence
from marketlens.domain.entities.pattern import Pattern, PatternStrength, PatternType
from marketlens.domain.services import decision_engine, pattern_recognizer
from marketlens.domain.value_objects.indicators import (
    IndicatorSnapshot,
    IndicatorSummary,
    Sentiment,
)

from tests.conftest import make_candle, uptrend


def pattern(name, kind, strength, description="desc"):
    return Pattern(name=name, type=kind, strength=strength, description=description)


STRONG_BULL = pattern("Bullish Engulfing", PatternType.BULLISH, PatternStrength.STRONG,
                      "Strong reversal signal - buyers overwhelmed sellers")
MEDIUM_BULL = pattern("Tweezer Bottom", PatternType.BULLISH, PatternStrength.MEDIUM)
STRONG_BEAR = pattern("Shooting Star", PatternType.BEARISH, PatternStrength.STRONG)
MEDIUM_BEAR = pattern("Dark Cloud Cover", PatternType.BEARISH, PatternStrength.MEDIUM)
HIGH_VOLUME = pattern("High Volume", PatternType.CONFIRMATION, PatternStrength.STRONG)


def snapshot(sentiment, bullish=0, bearish=0):
    """Snapshot mínimo: solo el resumen de votos."""
    return IndicatorSnapshot(
        rsi=None, macd=None, stochastic=None, adx=None, bollinger=None, atr=None,
        obv=None, volume_profile=None, elliott_wave=None, ema20=None, ema50=None,
        summary=IndicatorSummary(sentiment, bullish, bearish, 75, "test"),
    )


BULLISH_LEAN = snapshot(Sentiment.BULLISH, bullish=3, bearish=1)
BEARISH_LEAN = snapshot(Sentiment.BEARISH, bullish=1, bearish=3)


@pytest.fixture
def candle():
    return make_candle(0, open=100, high=110, low=95, close=108)


class TestNoPattern:

    def test_wait_without_history(self, candle):
        decision = decision_engine.decide([], candle, [candle])

        assert decision.action == Action.WAIT
        assert decision.confidence == Confidence.NONE
        assert decision.reasoning == ("No clear pattern detected", "Wait for setup")
        assert decision.entry is None
        assert decision.indicator_signals is None

    def test_indicator_lean_raises_confidence(self):
        candles = uptrend(30)
        decision = decision_engine.decide([], candles[-1], candles)

        assert decision.action == Action.WAIT
        assert decision.confidence == Confidence.LOW
        # RSI sobrecomprado (bajista) vs ADX alcista
        assert decision.reasoning[1] == "Indicators lean MIXED (50%)"
        assert decision.indicator_signals.sentiment == "MIXED"


class TestLong:

    def test_strong_bullish_levels(self, candle):
        decision = decision_engine.decide([STRONG_BULL], candle, [candle])

        assert decision.action == Action.LONG
        assert decision.entry == pytest.approx(110.15)
        assert decision.stop_loss == pytest.approx(92.75)
        risk = 110.15 - 92.75
        assert decision.target1 == pytest.approx(110.15 + risk * 1.5)
        assert decision.target2 == pytest.approx(110.15 + risk * 2.5)
        assert decision.target3 == pytest.approx(110.15 + risk * 4)
        assert decision.risk_reward == "1:2.5"

    def test_reasoning_order(self, candle):
        decision = decision_engine.decide([STRONG_BULL], candle, [candle])

        assert decision.reasoning[0] == STRONG_BULL.description
        assert decision.reasoning[1] == "⚠ Wait for volume confirmation"
        assert decision.reasoning[2] == "Entry: Break above candle high"
        assert decision.reasoning[-1].startswith("Risk: ")
        assert decision.reasoning[-1].endswith("% to stop loss")

    def test_confidence_scales_with_volume(self, candle):
        without = decision_engine.decide([STRONG_BULL], candle, [candle])
        with_volume = decision_engine.decide([STRONG_BULL, HIGH_VOLUME], candle, [candle])

        assert without.confidence == Confidence.MEDIUM
        assert with_volume.confidence == Confidence.HIGH
        assert with_volume.reasoning[1] == "✓ Volume confirms the move"

    def test_medium_needs_volume(self, candle):
        alone = decision_engine.decide([MEDIUM_BULL], candle, [candle])
        confirmed = decision_engine.decide([MEDIUM_BULL, HIGH_VOLUME], candle, [candle])

        assert alone.action == Action.WAIT
        assert alone.confidence == Confidence.LOW
        assert alone.reasoning[0] == "Pattern detected but not strong enough"
        assert confirmed.action == Action.LONG
        assert confirmed.confidence == Confidence.LOW

    def test_long_checked_before_short(self, candle):
        decision = decision_engine.decide([STRONG_BEAR, STRONG_BULL], candle, [candle])
        assert decision.action == Action.LONG


class TestShort:

    def test_strong_bearish_levels(self, candle):
        decision = decision_engine.decide([STRONG_BEAR], candle, [candle])

        assert decision.action == Action.SHORT
        assert decision.entry == pytest.approx(94.85)
        assert decision.stop_loss == pytest.approx(112.25)
        assert decision.target1 < decision.entry
        assert decision.reasoning[2] == "Entry: Break below candle low"


class TestWithIndicators:

    def test_stop_uses_atr(self):
        candles = uptrend(40)
        last = candles[-1]
        decision = decision_engine.decide([STRONG_BULL], last, candles)

        # ATR de una serie de marubozus de rango 1 = 1
        assert decision.stop_loss == pytest.approx(last.low - 1.5)
        assert any(r.startswith("RSI ") for r in decision.reasoning)
        assert "EMA20/EMA50 trend aligned with the trade" not in decision.reasoning
        assert decision.indicator_signals is not None

    def test_pure(self):
        candles = uptrend(40)
        first = decision_engine.decide([STRONG_BULL], candles[-1], candles)
        second = decision_engine.decide([STRONG_BULL], candles[-1], candles)
        assert first == second
        assert first.to_dict() == second.to_dict()


class TestFromRecognizedPatterns:

    def test_uptrend_marubozu_goes_long(self):
        candles = uptrend(20)
        last = candles[-1]
        patterns = pattern_recognizer.analyze(candles)

        decision = decision_engine.decide(patterns, last, candles)

        assert "Bullish Marubozu" in [p.name for p in patterns]
        assert decision.action == Action.LONG
        assert decision.entry == pytest.approx(last.high + 0.01 * last.range)


class TestIndicatorAgreement:

    def test_medium_bullish_with_bullish_lean_goes_long(self, candle):
        decision = decision_engine.decide([MEDIUM_BULL], candle, [candle], indicators=BULLISH_LEAN)

        assert decision.action == Action.LONG
        assert decision.confidence == Confidence.LOW
        assert decision.entry == pytest.approx(110.15)
        assert "Signals: 3 bullish vs 1 bearish" in decision.reasoning
        assert decision.indicator_signals.sentiment == "BULLISH"

    def test_medium_bearish_with_bearish_lean_goes_short(self, candle):
        decision = decision_engine.decide([MEDIUM_BEAR], candle, [candle], indicators=BEARISH_LEAN)

        assert decision.action == Action.SHORT
        assert decision.entry == pytest.approx(94.85)

    def test_medium_against_the_lean_waits(self, candle):
        decision = decision_engine.decide([MEDIUM_BULL], candle, [candle], indicators=BEARISH_LEAN)

        assert decision.action == Action.WAIT
        assert decision.reasoning[0] == "Pattern detected but not strong enough"

    def test_agreement_raises_confidence(self, candle):
        decision = decision_engine.decide([STRONG_BULL], candle, [candle], indicators=BULLISH_LEAN)
        assert decision.confidence == Confidence.HIGH

    def test_conflicting_lean_drops_one_level(self, candle):
        plain = decision_engine.decide([STRONG_BULL], candle, [candle], indicators=None)
        conflict = decision_engine.decide([STRONG_BULL], candle, [candle], indicators=BEARISH_LEAN)

        assert plain.confidence == Confidence.MEDIUM
        assert conflict.action == Action.LONG
        assert conflict.confidence == Confidence.LOW

    def test_conflict_with_volume_still_medium(self, candle):
        decision = decision_engine.decide(
            [STRONG_BULL, HIGH_VOLUME], candle, [candle], indicators=BEARISH_LEAN
        )
        assert decision.confidence == Confidence.MEDIUM

    def test_conflict_on_short_side(self, candle):
        decision = decision_engine.decide([STRONG_BEAR], candle, [candle], indicators=BULLISH_LEAN)

        assert decision.action == Action.SHORT
        assert decision.confidence == Confidence.LOW

    def test_explicit_none_skips_series_indicators(self):
        candles = uptrend(40)
        decision = decision_engine.decide([STRONG_BULL], candles[-1], candles, indicators=None)

        assert decision.indicator_signals is None
        assert not any(r.startswith("RSI ") for r in decision.reasoning)
