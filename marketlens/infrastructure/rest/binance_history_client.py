"""
MarketLens – Binance History Client
=====================================
Velas históricas vía GET /api/v3/klines sobre httpx.AsyncClient.

Cada fila del API es un array:
  [openTime, open, high, low, close, volume, closeTime, ...]
Se parsean a Candle con is_closed=True.

ERRORES:
- Transporte / HTTP / JSON → se loguea y se devuelve [].
- Filas malformadas se saltan individualmente.
"""

from __future__ import annotations

from typing import List, Optional

import httpx

from marketlens.application.ports.history_provider import IHistoryProvider
from marketlens.domain.entities.candle import Candle
from marketlens.domain.exceptions.domain_errors import ParseError
from marketlens.shared.config.symbols import binance_symbol
from marketlens.shared.logging.logger import get_logger

logger = get_logger("binance_rest")

KLINES_PATH = "/api/v3/klines"


class BinanceHistoryClient(IHistoryProvider):

    def __init__(
        self,
        base_url: str = "https://api.binance.com",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def fetch_klines(
        self,
        instrument: str,
        timeframe: str,
        limit: int = 100,
    ) -> List[Candle]:
        symbol = binance_symbol(instrument)
        if symbol is None:
            logger.warning("Instrumento sin símbolo Binance: %s", instrument)
            return []

        params = {"symbol": symbol, "interval": timeframe, "limit": limit}
        try:
            resp = await self._client.get(f"{self._base_url}{KLINES_PATH}", params=params)
            resp.raise_for_status()
            rows = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Binance klines %s %s → HTTP %d: %s",
                symbol, timeframe, e.response.status_code, e.response.text[:200],
            )
            return []
        except httpx.HTTPError as e:
            logger.error("Error de transporte pidiendo klines %s %s: %s", symbol, timeframe, e)
            return []
        except ValueError as e:
            logger.error("Respuesta no-JSON de klines %s %s: %s", symbol, timeframe, e)
            return []

        if not isinstance(rows, list):
            logger.error("Respuesta inesperada de klines %s %s: %r", symbol, timeframe, rows)
            return []

        candles: List[Candle] = []
        skipped = 0
        for row in rows:
            try:
                candles.append(
                    Candle.parse(
                        open_time=row[0],
                        open=row[1],
                        high=row[2],
                        low=row[3],
                        close=row[4],
                        volume=row[5],
                        close_time=row[6],
                        is_closed=True,
                    )
                )
            except (ParseError, IndexError, TypeError):
                skipped += 1

        if skipped:
            logger.warning("%d filas de klines descartadas para %s %s", skipped, symbol, timeframe)
        return candles

    async def close(self) -> None:
        await self._client.aclose()
