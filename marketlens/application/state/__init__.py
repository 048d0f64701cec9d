"""Estado en memoria propiedad de la capa de aplicación."""
from marketlens.application.state.candle_store import CandleStore, SeriesChanged
from marketlens.application.state.price_aggregator import PriceAggregator

__all__ = ["CandleStore", "SeriesChanged", "PriceAggregator"]
