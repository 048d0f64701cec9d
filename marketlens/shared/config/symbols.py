"""
MarketLens – Tablas de símbolos por exchange
=============================================
Mapeos estáticos entre el símbolo de cada exchange y el nombre de
instrumento interno (e.g. "BTC_USDT").

No todos los instrumentos existen en todos los exchanges:
BNB no cotiza ni en Coinbase ni en Kraken.
"""

from __future__ import annotations

from typing import Dict, Optional

# Símbolo Binance → instrumento interno
INSTRUMENT_DISPLAY: Dict[str, str] = {
    "BTCUSDT": "BTC_USDT",
    "ETHUSDT": "ETH_USDT",
    "BNBUSDT": "BNB_USDT",
    "XRPUSDT": "XRP_USDT",
    "ADAUSDT": "ADA_USDT",
    "SOLUSDT": "SOL_USDT",
    "DOGEUSDT": "DOGE_USDT",
    "DOTUSDT": "DOT_USDT",
    "MATICUSDT": "MATIC_USDT",
    "LTCUSDT": "LTC_USDT",
}

# Instrumento interno → product_id de Coinbase
COINBASE_SYMBOLS: Dict[str, str] = {
    "BTC_USDT": "BTC-USD",
    "ETH_USDT": "ETH-USD",
    "SOL_USDT": "SOL-USD",
    "DOGE_USDT": "DOGE-USD",
    "DOT_USDT": "DOT-USD",
    "MATIC_USDT": "MATIC-USD",
    "LTC_USDT": "LTC-USD",
    "XRP_USDT": "XRP-USD",
    "ADA_USDT": "ADA-USD",
}

# Instrumento interno → par de Kraken (Kraken usa XBT para bitcoin)
KRAKEN_SYMBOLS: Dict[str, str] = {
    "BTC_USDT": "XBT/USD",
    "ETH_USDT": "ETH/USD",
    "SOL_USDT": "SOL/USD",
    "DOGE_USDT": "DOGE/USD",
    "DOT_USDT": "DOT/USD",
    "MATIC_USDT": "MATIC/USD",
    "LTC_USDT": "LTC/USD",
    "XRP_USDT": "XRP/USD",
    "ADA_USDT": "ADA/USD",
}

_BINANCE_BY_DISPLAY = {v: k for k, v in INSTRUMENT_DISPLAY.items()}
_DISPLAY_BY_COINBASE = {v: k for k, v in COINBASE_SYMBOLS.items()}
_DISPLAY_BY_KRAKEN = {v: k for k, v in KRAKEN_SYMBOLS.items()}


def display_name(binance_symbol: str) -> Optional[str]:
    """BTCUSDT → BTC_USDT (None si no está configurado)."""
    return INSTRUMENT_DISPLAY.get(binance_symbol.upper())


def binance_symbol(instrument: str) -> Optional[str]:
    """BTC_USDT → BTCUSDT."""
    return _BINANCE_BY_DISPLAY.get(instrument)


def from_coinbase(product_id: str) -> Optional[str]:
    return _DISPLAY_BY_COINBASE.get(product_id)


def from_kraken(pair: str) -> Optional[str]:
    return _DISPLAY_BY_KRAKEN.get(pair)
