"""Clientes REST de exchanges."""
from marketlens.infrastructure.rest.binance_history_client import BinanceHistoryClient

__all__ = ["BinanceHistoryClient"]
