"""Conectores WebSocket de exchanges."""
from marketlens.infrastructure.exchanges.base import ExchangeConnector
from marketlens.infrastructure.exchanges.binance import BinanceConnector
from marketlens.infrastructure.exchanges.coinbase import CoinbaseConnector
from marketlens.infrastructure.exchanges.kraken import KrakenConnector
from marketlens.infrastructure.exchanges.supervisor import ConnectionSupervisor

__all__ = [
    "ExchangeConnector",
    "BinanceConnector",
    "CoinbaseConnector",
    "KrakenConnector",
    "ConnectionSupervisor",
]
