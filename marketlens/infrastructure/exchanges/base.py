"""
MarketLens – Exchange Connector (base asíncrona)
==================================================
Conexión WebSocket a un exchange que publica eventos normalizados
(TickerEvent / KlineEvent) en el EventBus.

Ciclo de vida:
  1. start()          → lanza la task de conexión
  2. _connect_loop()  → conectar, suscribir, escuchar; reconexión vía supervisor
  3. handle_message() → JSON → translate() → publish("market_event", ...)
  4. stop()           → cancelar espera de reconexión, cerrar socket, cancelar tasks

Cada subclase aporta solo el formato del exchange:
  - url()        → endpoint (Binance codifica los streams en la URL)
  - subscribe()  → mensaje de suscripción tras conectar
  - translate()  → dict del cable → lista de eventos normalizados

ERRORES:
- JSON inválido o ParseError → se descarta ESE mensaje, nunca la conexión.
- ConnectionClosed / OSError / inesperados → supervisor decide si reintentar.
"""

from __future__ import annotations

import asyncio
import json
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List, Optional, Set

import websockets
from websockets.asyncio.client import ClientConnection

from marketlens.application.ports.event_publisher import IEventPublisher
from marketlens.application.use_cases.process_market_event_usecase import MARKET_EVENT_TOPIC
from marketlens.domain.exceptions.domain_errors import ParseError
from marketlens.infrastructure.exchanges.supervisor import ConnectionSupervisor
from marketlens.shared.logging.logger import get_logger

OnConnected = Callable[[], Awaitable[Any]]


class ExchangeConnector(ABC):
    """Conector WebSocket genérico con reconexión supervisada."""

    name: str = "exchange"

    def __init__(
        self,
        publisher: IEventPublisher,
        url: str,
        supervisor: ConnectionSupervisor,
        on_connected: Optional[OnConnected] = None,
    ) -> None:
        self._publisher = publisher
        self._url = url
        self._supervisor = supervisor
        self._on_connected = on_connected
        self._ws: Optional[ClientConnection] = None
        self._running = False
        self._connect_task: Optional[asyncio.Task] = None
        self._background: Set[asyncio.Task] = set()
        self._logger = get_logger(f"exchange.{self.name}")

        # Estadísticas de monitoreo
        self._messages_received = 0
        self._events_published = 0
        self._parse_errors = 0
        self._connected_since = 0.0

    # ──────────────────────── Formato del exchange ───────────────────────

    def url(self) -> str:
        return self._url

    async def subscribe(self, ws: ClientConnection) -> None:
        """Mensaje de suscripción tras conectar (por defecto ninguno)."""

    @abstractmethod
    def translate(self, data: Any) -> List[object]:
        """Mensaje decodificado → eventos normalizados. Puede lanzar ParseError."""

    # ──────────────────────── Lifecycle ──────────────────────────────────

    async def start(self) -> None:
        """Iniciar conector. Idempotente."""
        if self._running:
            self._logger.warning("%s ya está corriendo, ignorando start()", self.name)
            return

        self._running = True
        self._connect_task = asyncio.create_task(
            self._connect_loop(), name=f"{self.name}-connect-loop"
        )
        self._logger.info("Conector %s iniciado", self.name)

    async def stop(self) -> None:
        """Shutdown limpio: cancelar reconexión pendiente, cerrar WS y tasks."""
        self._running = False
        self._supervisor.cancel()

        if self._ws is not None:
            try:
                await self._ws.close()
            except Exception as e:
                self._logger.debug("Error cerrando socket de %s: %s", self.name, e)

        tasks = list(self._background)
        if self._connect_task and not self._connect_task.done():
            tasks.append(self._connect_task)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._background.clear()

        self._logger.info(
            "Conector %s detenido. Mensajes recibidos: %d",
            self.name,
            self._messages_received,
        )

    # ──────────────────────── Connection Loop ───────────────────────────

    async def _connect_loop(self) -> None:
        """Conectar → escuchar → (desconexión) → supervisor → repetir."""
        while self._running:
            try:
                self._logger.info("Conectando a %s: %s", self.name, self._short_url())
                async with websockets.connect(
                    self.url(),
                    close_timeout=10,
                    max_size=2**22,
                ) as ws:
                    self._ws = ws
                    self._supervisor.reset()
                    self._connected_since = time.time()
                    self._logger.info("✓ Conectado a %s", self.name)

                    await self.subscribe(ws)
                    if self._on_connected is not None:
                        self._spawn(self._on_connected())

                    await self._listen(ws)

            except websockets.exceptions.ConnectionClosed as e:
                self._logger.warning("Conexión %s cerrada: %s", self.name, e)
            except OSError as e:
                self._logger.error("Error de red en %s: %s", self.name, e)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._logger.error(
                    "Error inesperado en %s connect_loop: %s", self.name, e, exc_info=True
                )
            finally:
                self._ws = None

            if not self._running:
                break
            if not await self._supervisor.wait_before_retry():
                break

        self._running = False

    async def _listen(self, ws: ClientConnection) -> None:
        async for raw_msg in ws:
            if not self._running:
                break
            await self.handle_message(raw_msg)

    async def handle_message(self, raw_msg: str | bytes) -> int:
        """
        Decodificar, traducir y publicar un mensaje del exchange.
        Retorna el número de eventos publicados (0 si se descartó).
        """
        self._messages_received += 1

        try:
            data = json.loads(raw_msg)
        except json.JSONDecodeError:
            self._parse_errors += 1
            self._logger.warning("Mensaje no-JSON de %s, ignorando", self.name)
            return 0

        try:
            events = self.translate(data)
        except ParseError as e:
            self._parse_errors += 1
            self._logger.warning(
                "Evento de %s descartado [%s]: %s", self.name, e.field, e.message
            )
            return 0

        for event in events:
            await self._publisher.publish(MARKET_EVENT_TOPIC, event)
        self._events_published += len(events)
        return len(events)

    # ──────────────────────── Helpers ───────────────────────────────────

    def _spawn(self, coro: Awaitable[Any]) -> None:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self._logger.error(
                "Tarea en background de %s falló: %s", self.name, task.exception()
            )

    def _short_url(self) -> str:
        url = self.url()
        return url if len(url) <= 80 else url[:77] + "..."

    # ──────────────────────── Stats ─────────────────────────────────────

    @property
    def connected(self) -> bool:
        return self._ws is not None

    @property
    def stats(self) -> dict:
        """Estadísticas del conector para /health."""
        return {
            "running": self._running,
            "connected": self.connected,
            "messages_received": self._messages_received,
            "events_published": self._events_published,
            "parse_errors": self._parse_errors,
            "connected_since": self._connected_since,
            "reconnect_attempts": self._supervisor.attempt,
            "exhausted": self._supervisor.exhausted,
        }
