"""
MarketLens – Broadcast Hub (WebSocket a clientes)
===================================================
Gestiona conexiones WebSocket de clientes y les envía tickers y
actualizaciones de velas en tiempo real.

ARQUITECTURA:
  EventBus ──(ticker)─────────▸ BroadcastHub._broadcast_loop()
  EventBus ──(candle_update)──▸ BroadcastHub._broadcast_loop()
       │
       ▼
  [Cliente WS 1, Cliente WS 2, ...]

PROTOCOLO (sobres JSON {type, data}):
  servidor → cliente: init | ticker | candle_update | history
  cliente → servidor: subscribe | get_history

NO BLOQUEA EL LOOP PRINCIPAL:
- Cada evento se serializa UNA vez y se envía en paralelo a un
  snapshot del set de clientes, con timeout por envío.
- Un cliente cuyo envío falla se poda; no se reintenta.
- connect/disconnect pueden ocurrir durante un broadcast: se itera
  siempre sobre una copia del set.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, Optional, Set

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from marketlens.application.state.candle_store import CandleStore
from marketlens.application.state.price_aggregator import PriceAggregator
from marketlens.application.use_cases.backfill_usecase import BackfillUseCase
from marketlens.application.use_cases.process_market_event_usecase import (
    CANDLE_UPDATE_TOPIC,
    TICKER_TOPIC,
    ProcessMarketEventUseCase,
)
from marketlens.domain.value_objects.tick import SeriesKey
from marketlens.infrastructure.event_bus import EventBus
from marketlens.presentation.api.schemas import ClientMessage, SeriesRequest
from marketlens.shared.logging.logger import get_logger

logger = get_logger("broadcast_hub")


class BroadcastHub:
    """Registro de clientes + fan-out de eventos en tiempo real."""

    def __init__(
        self,
        event_bus: EventBus,
        store: CandleStore,
        aggregator: PriceAggregator,
        processor: ProcessMarketEventUseCase,
        backfill: Optional[BackfillUseCase] = None,
        send_timeout: float = 5.0,
        broadcast_candles: int = 50,
    ) -> None:
        self._event_bus = event_bus
        self._store = store
        self._aggregator = aggregator
        self._processor = processor
        self._backfill = backfill
        self._send_timeout = send_timeout
        self._broadcast_candles = broadcast_candles
        self._clients: Set[WebSocket] = set()
        self._broadcast_tasks: list[asyncio.Task] = []

    # ──────────────────────── Lifecycle ──────────────────────────────────

    async def start(self) -> None:
        """Lanzar loops de broadcast para ticker y candle_update."""
        ticker_queue = await self._event_bus.subscribe(TICKER_TOPIC, "ws_broadcast_ticker")
        candle_queue = await self._event_bus.subscribe(
            CANDLE_UPDATE_TOPIC, "ws_broadcast_candle_update"
        )
        self._broadcast_tasks = [
            asyncio.create_task(
                self._broadcast_loop(ticker_queue, "ticker"),
                name="ws-broadcast-ticker",
            ),
            asyncio.create_task(
                self._broadcast_loop(candle_queue, "candle_update"),
                name="ws-broadcast-candle-update",
            ),
        ]
        logger.info("BroadcastHub iniciado – broadcast loops para ticker, candle_update")

    async def stop(self) -> None:
        """Cancelar broadcast y cerrar todos los clientes."""
        for task in self._broadcast_tasks:
            task.cancel()
        if self._broadcast_tasks:
            await asyncio.gather(*self._broadcast_tasks, return_exceptions=True)
        self._broadcast_tasks = []

        for ws in list(self._clients):
            try:
                await ws.close()
            except Exception as e:
                logger.debug("Error cerrando cliente WS: %s", e)
        self._clients.clear()
        logger.info("BroadcastHub detenido")

    # ──────────────────────── Clientes ──────────────────────────────────

    async def connect(self, websocket: WebSocket) -> None:
        """Aceptar, registrar y enviar el snapshot inicial."""
        await websocket.accept()
        self._clients.add(websocket)
        logger.info("Cliente WS conectado. Total: %d", len(self._clients))
        await self._send(websocket, "init", self.build_init())

    def disconnect(self, websocket: WebSocket) -> None:
        self._clients.discard(websocket)
        logger.info("Cliente WS desconectado. Total: %d", len(self._clients))

    async def serve(self, websocket: WebSocket) -> None:
        """Ciclo de vida completo de una conexión de cliente."""
        await self.connect(websocket)
        try:
            while True:
                try:
                    raw = await websocket.receive_text()
                except WebSocketDisconnect:
                    break
                await self.handle_client_message(websocket, raw)
        finally:
            self.disconnect(websocket)

    async def handle_client_message(self, websocket: WebSocket, raw: str) -> None:
        """subscribe / get_history; el resto se loguea y se ignora."""
        try:
            message = ClientMessage.model_validate_json(raw)
        except ValidationError:
            logger.warning("Mensaje de cliente inválido, ignorando: %s", raw[:100])
            return

        if message.type not in ("subscribe", "get_history"):
            logger.warning("Tipo de mensaje desconocido: %s", message.type)
            return

        try:
            request = SeriesRequest.model_validate(message.data)
        except ValidationError:
            logger.warning("Payload '%s' sin instrument/timeframe", message.type)
            return

        key = SeriesKey(request.instrument, request.timeframe)
        if not self._store.has(key):
            logger.warning("Cliente pidió clave desconocida: %s", key.wire)
            return

        if message.type == "subscribe":
            update = self._processor.current_update(key)
            if update is not None:
                await self._send(websocket, "candle_update", update.to_dict())
            return

        candles = await self._backfill.load(key.instrument, key.timeframe) if self._backfill else []
        await self._send(websocket, "history", {
            "instrument": key.instrument,
            "timeframe": key.timeframe,
            "candles": [c.to_dict() for c in candles],
        })

    def build_init(self) -> Dict[str, Any]:
        """Snapshot completo {tickers, candles, patterns, decisions}."""
        candles: Dict[str, Any] = {}
        patterns: Dict[str, Any] = {}
        decisions: Dict[str, Any] = {}
        for key in self._store.keys():
            series = self._store.get(key, self._broadcast_candles)
            if series:
                candles[key.wire] = [c.to_dict() for c in series]
            analysis = self._store.get_analysis(key)
            if analysis is not None:
                patterns[key.wire] = [p.to_dict() for p in analysis.patterns]
                decisions[key.wire] = analysis.decision.to_dict()

        return {
            "tickers": {
                instrument: ticker.to_dict()
                for instrument, ticker in self._aggregator.tickers().items()
                if ticker.price > 0
            },
            "candles": candles,
            "patterns": patterns,
            "decisions": decisions,
        }

    # ──────────────────────── Broadcast ─────────────────────────────────

    async def _broadcast_loop(self, queue: asyncio.Queue, event_type: str) -> None:
        """Consume eventos de una Queue y los envía a todos los clientes."""
        try:
            while True:
                try:
                    data = await asyncio.wait_for(queue.get(), timeout=1.0)
                except asyncio.TimeoutError:
                    continue
                await self.broadcast(event_type, data)
        except asyncio.CancelledError:
            pass  # Shutdown limpio

    async def broadcast(self, event_type: str, data: Any) -> int:
        """Serializar una vez y enviar a todos; retorna clientes podados."""
        if not self._clients:
            return 0

        payload_data = data.to_dict() if hasattr(data, "to_dict") else data
        payload = json.dumps({"type": event_type, "data": payload_data})

        clients = list(self._clients)
        results = await asyncio.gather(*(self._safe_send(ws, payload) for ws in clients))

        dead = [ws for ws, ok in zip(clients, results) if not ok and ws in self._clients]
        for ws in dead:
            self._clients.discard(ws)
        if dead:
            await asyncio.gather(*(self._close_quietly(ws) for ws in dead))
            logger.warning("%d cliente(s) WS podados tras fallo de envío", len(dead))
        return len(dead)

    async def _safe_send(self, ws: WebSocket, payload: str) -> bool:
        """
        Enviar payload a un cliente con timeout.
        No lanza excepciones → no rompe el gather de broadcast.
        """
        try:
            await asyncio.wait_for(ws.send_text(payload), timeout=self._send_timeout)
            return True
        except Exception as e:
            logger.debug("Envío a cliente WS falló: %s", e)
            return False

    async def _send(self, ws: WebSocket, event_type: str, data: Any) -> None:
        payload = json.dumps({"type": event_type, "data": data})
        if not await self._safe_send(ws, payload):
            self._clients.discard(ws)
            await self._close_quietly(ws)

    async def _close_quietly(self, ws: WebSocket) -> None:
        """Cerrar un cliente podado; termina su bucle de lectura en serve()."""
        try:
            await asyncio.wait_for(ws.close(code=1011), timeout=self._send_timeout)
        except Exception as e:
            logger.debug("Cierre de cliente WS podado falló: %s", e)

    @property
    def client_count(self) -> int:
        return len(self._clients)
