"""Domain value objects."""
from marketlens.domain.value_objects.tick import KlineEvent, SeriesKey, TickerEvent
from marketlens.domain.value_objects.ticker_state import TickerState
from marketlens.domain.value_objects.indicators import IndicatorSnapshot, Sentiment
from marketlens.domain.value_objects.analysis import SeriesAnalysis

__all__ = [
    "KlineEvent",
    "SeriesKey",
    "TickerEvent",
    "TickerState",
    "IndicatorSnapshot",
    "Sentiment",
    "SeriesAnalysis",
]
