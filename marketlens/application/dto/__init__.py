"""Application DTOs - Data Transfer Objects for use cases."""
from marketlens.application.dto.candle_update_dto import CandleUpdateDTO

__all__ = ["CandleUpdateDTO"]
