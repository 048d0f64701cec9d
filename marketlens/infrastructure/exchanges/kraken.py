"""
MarketLens – Kraken Connector
===============================
WebSocket público v1 de Kraken. Solo aporta precio al agregado.

  → {"event": "subscribe", "pair": [...], "subscription": {"name": "ticker"}}
  ← [channelId, {"c": [price, lotVolume], ...}, "ticker", "XBT/USD"]

Los mensajes tipo dict (heartbeat, systemStatus, subscriptionStatus)
se ignoran.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, List, Mapping

from websockets.asyncio.client import ClientConnection

from marketlens.domain.entities.candle import parse_number
from marketlens.domain.exceptions.domain_errors import ParseError
from marketlens.domain.value_objects.tick import TickerEvent
from marketlens.infrastructure.exchanges.base import ExchangeConnector
from marketlens.shared.config.symbols import KRAKEN_SYMBOLS, from_kraken

EXCHANGE = "kraken"


def subscribe_message(instruments: Iterable[str]) -> dict:
    pairs = [KRAKEN_SYMBOLS[i] for i in instruments if i in KRAKEN_SYMBOLS]
    return {"event": "subscribe", "pair": pairs, "subscription": {"name": "ticker"}}


def translate(message: Any) -> List[object]:
    if not isinstance(message, list) or len(message) < 4 or message[2] != "ticker":
        return []
    instrument = from_kraken(str(message[3]))
    if instrument is None:
        return []

    payload = message[1]
    last = payload.get("c") if isinstance(payload, Mapping) else None
    if not isinstance(last, list) or not last:
        raise ParseError("Ticker de Kraken sin último precio", field="c", value=last)

    return [
        TickerEvent(
            exchange=EXCHANGE,
            instrument=instrument,
            price=parse_number("c", last[0]),
        )
    ]


class KrakenConnector(ExchangeConnector):
    name = EXCHANGE

    def __init__(self, *args, instruments: Iterable[str] = (), **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._instruments = list(instruments)

    async def subscribe(self, ws: ClientConnection) -> None:
        msg = subscribe_message(self._instruments)
        await ws.send(json.dumps(msg))
        self._logger.info("Suscrito a ticker de Kraken: %s", msg["pair"])

    def translate(self, data: Any) -> List[object]:
        if isinstance(data, Mapping) and data.get("event") == "subscriptionStatus" \
                and data.get("status") == "error":
            self._logger.warning("Suscripción Kraken rechazada: %s", data.get("errorMessage"))
        return translate(data)
