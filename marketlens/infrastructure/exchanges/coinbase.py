"""
MarketLens – Coinbase Connector
=================================
Canal "ticker" de Coinbase Exchange. Solo aporta precio al agregado.

  → {"type": "subscribe", "product_ids": [...], "channels": ["ticker"]}
  ← {"type": "ticker", "product_id": "BTC-USD", "price": "...", ...}
"""

from __future__ import annotations

import json
from typing import Any, Iterable, List, Mapping

from websockets.asyncio.client import ClientConnection

from marketlens.domain.entities.candle import parse_number
from marketlens.domain.value_objects.tick import TickerEvent
from marketlens.infrastructure.exchanges.base import ExchangeConnector
from marketlens.shared.config.symbols import COINBASE_SYMBOLS, from_coinbase

EXCHANGE = "coinbase"


def subscribe_message(instruments: Iterable[str]) -> dict:
    products = [COINBASE_SYMBOLS[i] for i in instruments if i in COINBASE_SYMBOLS]
    return {"type": "subscribe", "product_ids": products, "channels": ["ticker"]}


def translate(message: Any) -> List[object]:
    if not isinstance(message, Mapping) or message.get("type") != "ticker":
        return []
    instrument = from_coinbase(str(message.get("product_id", "")))
    if instrument is None:
        return []
    return [
        TickerEvent(
            exchange=EXCHANGE,
            instrument=instrument,
            price=parse_number("price", message.get("price")),
        )
    ]


class CoinbaseConnector(ExchangeConnector):
    name = EXCHANGE

    def __init__(self, *args, instruments: Iterable[str] = (), **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._instruments = list(instruments)

    async def subscribe(self, ws: ClientConnection) -> None:
        msg = subscribe_message(self._instruments)
        await ws.send(json.dumps(msg))
        self._logger.info("Suscrito a ticker de Coinbase: %s", msg["product_ids"])

    def translate(self, data: Any) -> List[object]:
        if isinstance(data, Mapping) and data.get("type") == "error":
            self._logger.warning("Error de Coinbase: %s", data.get("message", "sin detalle"))
        return translate(data)
