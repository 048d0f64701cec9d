"""
MarketLens – Candle Store
===========================
Dueño exclusivo de todas las series OHLCV por (instrumento, timeframe).

INVARIANTES DE CADA SERIE:
- Ordenada ascendente por open_time, sin open_time duplicados.
- Longitud ≤ capacity (100); al exceder se descarta la más antigua.
- upsert: mismo open_time → reemplazo en sitio; nuevo → append,
  re-ordenar y recortar. Un duplicado tardío solo sobrescribe.

CONCURRENCIA:
- Un asyncio.Lock por clave. El pipeline toma el lock alrededor de
  upsert + recálculo → como mucho una mutación en vuelo por clave.
- Claves distintas avanzan en paralelo; no hay lock global.

También guarda el último SeriesAnalysis por clave ("latest").
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from marketlens.domain.entities.candle import Candle
from marketlens.domain.value_objects.analysis import SeriesAnalysis
from marketlens.domain.value_objects.tick import SeriesKey
from marketlens.shared.logging.logger import get_logger

logger = get_logger("candle_store")


@dataclass(frozen=True, slots=True)
class SeriesChanged:
    """Resultado de un upsert: snapshot inmutable de la serie."""

    key: SeriesKey
    candles: tuple[Candle, ...]
    inserted: bool          # False → se reemplazó una vela existente
    latest: Candle


@dataclass
class _SeriesState:
    candles: List[Candle]
    lock: asyncio.Lock
    analysis: Optional[SeriesAnalysis] = None


class CandleStore:
    """
    Store explícito de series, inyectado por el container.
    Acceso: store.get(SeriesKey("BTC_USDT", "1m")) → list[Candle]
    """

    def __init__(self, keys: Iterable[SeriesKey] = (), capacity: int = 100) -> None:
        self._capacity = capacity
        self._series: Dict[SeriesKey, _SeriesState] = {}
        for key in keys:
            self.ensure(key)

    @property
    def capacity(self) -> int:
        return self._capacity

    def ensure(self, key: SeriesKey) -> None:
        if key not in self._series:
            self._series[key] = _SeriesState(candles=[], lock=asyncio.Lock())

    def has(self, key: SeriesKey) -> bool:
        return key in self._series

    def keys(self) -> List[SeriesKey]:
        return list(self._series.keys())

    def lock(self, key: SeriesKey) -> asyncio.Lock:
        self.ensure(key)
        return self._series[key].lock

    # ─── Mutación ───────────────────────────────────────────────────────

    def upsert(self, key: SeriesKey, candle: Candle) -> SeriesChanged:
        """Insertar o reemplazar una vela por open_time."""
        self.ensure(key)
        series = self._series[key].candles

        # Caso caliente: actualización de la vela en curso
        if series and series[-1].open_time == candle.open_time:
            series[-1] = candle
            inserted = False
        else:
            for i in range(len(series) - 1, -1, -1):
                if series[i].open_time == candle.open_time:
                    series[i] = candle
                    inserted = False
                    break
            else:
                inserted = True
                needs_sort = bool(series) and candle.open_time < series[-1].open_time
                series.append(candle)
                if needs_sort:
                    series.sort(key=lambda c: c.open_time)
                if len(series) > self._capacity:
                    del series[: len(series) - self._capacity]

        return SeriesChanged(
            key=key,
            candles=tuple(series),
            inserted=inserted,
            latest=series[-1],
        )

    def replace_all(self, key: SeriesKey, candles: Iterable[Candle]) -> List[Candle]:
        """
        Sobrescribir la serie completa (backfill / carga desde cache).
        Deduplica por open_time (gana la última), ordena y recorta.
        """
        self.ensure(key)
        unique = {c.open_time: c for c in candles}
        ordered = sorted(unique.values(), key=lambda c: c.open_time)
        if len(ordered) > self._capacity:
            ordered = ordered[-self._capacity:]
        self._series[key].candles = ordered
        logger.debug("Serie %s reemplazada (%d velas)", key.wire, len(ordered))
        return list(ordered)

    # ─── Lectura ────────────────────────────────────────────────────────

    def get(self, key: SeriesKey, count: Optional[int] = None) -> List[Candle]:
        state = self._series.get(key)
        if state is None:
            return []
        if count is None:
            return list(state.candles)
        return state.candles[-count:] if count > 0 else []

    def size(self, key: SeriesKey) -> int:
        state = self._series.get(key)
        return len(state.candles) if state else 0

    # ─── Último análisis ────────────────────────────────────────────────

    def set_analysis(self, key: SeriesKey, analysis: Optional[SeriesAnalysis]) -> None:
        """None limpia el análisis previo (serie demasiado corta)."""
        self.ensure(key)
        self._series[key].analysis = analysis

    def get_analysis(self, key: SeriesKey) -> Optional[SeriesAnalysis]:
        state = self._series.get(key)
        return state.analysis if state else None

    def snapshot(self) -> dict:
        """Conteos por clave para diagnóstico / health."""
        return {key.wire: len(s.candles) for key, s in self._series.items()}
