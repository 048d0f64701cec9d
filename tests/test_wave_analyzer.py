import pytest

from marketlens.domain.services import wave_analyzer
from marketlens.domain.value_objects.indicators import WavePoint


def points(*pivots):
    return [WavePoint(index=i * 5, price=price, kind=kind) for i, (kind, price) in enumerate(pivots)]


class TestPivots:

    def test_needs_eleven_values(self):
        assert wave_analyzer.analyze_waves([1.0] * 10, [0.5] * 10) is None

    def test_single_peak(self):
        highs = [1, 2, 3, 4, 5, 10, 5, 4, 3, 2, 1]
        lows = [h - 0.5 for h in highs]
        pivots = wave_analyzer.find_pivots(highs, lows)
        assert pivots == [WavePoint(index=5, price=10, kind="high")]

    def test_flat_series_is_indeterminate(self):
        result = wave_analyzer.analyze_waves([10.0] * 20, [9.0] * 20)
        assert result.pattern == "indeterminate"
        assert result.wave is None
        assert result.confidence == "low"
        assert result.points == ()

    def test_alternate_keeps_most_extreme(self):
        merged = wave_analyzer.alternate(points(
            ("high", 10), ("high", 12), ("low", 5), ("low", 4), ("high", 9),
        ))
        assert [(p.kind, p.price) for p in merged] == [("high", 12), ("low", 4), ("high", 9)]


class TestTemplates:

    def test_complete_bullish_impulse(self):
        result = wave_analyzer._match_impulse(points(
            ("low", 100), ("high", 110), ("low", 105),
            ("high", 120), ("low", 112), ("high", 125),
        ))
        assert result.pattern == "impulse"
        assert result.direction == "bullish"
        assert result.wave == "5"
        assert result.confidence == "high"
        assert result.projection == pytest.approx(125 - 0.382 * 25)

    def test_wave_four_projects_wave_five(self):
        result = wave_analyzer._match_impulse(points(
            ("low", 100), ("high", 110), ("low", 105), ("high", 120), ("low", 112),
        ))
        assert result.wave == "4"
        assert result.confidence == "medium"
        assert result.projection == pytest.approx(122.0)

    def test_wave_four_overlap_rejected(self):
        assert wave_analyzer._match_impulse(points(
            ("low", 100), ("high", 110), ("low", 105), ("high", 120), ("low", 108),
        )) is None

    def test_bearish_abc_correction(self):
        result = wave_analyzer._match_corrective(points(
            ("high", 120), ("low", 100), ("high", 110), ("low", 95),
        ))
        assert result.pattern == "corrective"
        assert result.direction == "bearish"
        assert result.wave == "C"
        assert result.confidence == "medium"
        assert result.projection == pytest.approx(95 + 0.618 * 25)
