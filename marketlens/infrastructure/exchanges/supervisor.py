"""
MarketLens – Connection Supervisor
====================================
Política de reconexión de UN conector de exchange.

BACKOFF LINEAL ACOTADO:
- delay = base_delay × min(intento, cap)   (5s, 10s, … 25s, 25s, …)
- Tras `max_attempts` intentos consecutivos sin éxito se abandona el
  exchange: se loguea como ERROR y el proceso sigue con los demás.
- Una conexión exitosa resetea el contador.

CANCELACIÓN:
- La espera es cancelable vía asyncio.Event → el shutdown no tiene
  que esperar a que venza un timer de reconexión pendiente.
"""

from __future__ import annotations

import asyncio

from marketlens.shared.logging.logger import get_logger

logger = get_logger("supervisor")


class ConnectionSupervisor:

    def __init__(
        self,
        name: str,
        base_delay: float = 5.0,
        backoff_cap: int = 5,
        max_attempts: int = 10,
    ) -> None:
        self._name = name
        self._base_delay = base_delay
        self._backoff_cap = backoff_cap
        self._max_attempts = max_attempts
        self._attempt = 0
        self._exhausted = False
        self._cancelled = asyncio.Event()

    @property
    def attempt(self) -> int:
        return self._attempt

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def delay_for(self, attempt: int) -> float:
        return self._base_delay * min(attempt, self._backoff_cap)

    def reset(self) -> None:
        """Conexión exitosa → contador a cero."""
        self._attempt = 0

    def cancel(self) -> None:
        """Despertar y abortar cualquier espera pendiente (shutdown)."""
        self._cancelled.set()

    async def wait_before_retry(self) -> bool:
        """
        Esperar el delay del siguiente intento.

        Returns:
            True si se debe reintentar; False si se agotó el presupuesto
            de intentos o la espera fue cancelada.
        """
        if self._cancelled.is_set():
            return False

        self._attempt += 1
        if self._attempt > self._max_attempts:
            self._exhausted = True
            logger.error(
                "[%s] %d intentos de reconexión agotados – exchange abandonado",
                self._name,
                self._max_attempts,
            )
            return False

        delay = self.delay_for(self._attempt)
        logger.info(
            "[%s] Reconectando en %.1fs (intento #%d/%d)...",
            self._name,
            delay,
            self._attempt,
            self._max_attempts,
        )
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return True
        return False
