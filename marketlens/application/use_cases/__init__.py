"""Application use cases."""
from marketlens.application.use_cases.process_market_event_usecase import (
    CANDLE_UPDATE_TOPIC,
    MARKET_EVENT_TOPIC,
    TICKER_TOPIC,
    ProcessMarketEventUseCase,
)
from marketlens.application.use_cases.backfill_usecase import BackfillUseCase

__all__ = [
    "MARKET_EVENT_TOPIC",
    "TICKER_TOPIC",
    "CANDLE_UPDATE_TOPIC",
    "ProcessMarketEventUseCase",
    "BackfillUseCase",
]
