"""
MarketLens – API Routes (FastAPI)
===================================
Endpoints REST y WebSocket para clientes.

Endpoints disponibles:
  WS   /ws                                        → streaming en tiempo real
  GET  /health                                    → estado por exchange + clientes
  GET  /api/instruments                           → instrumentos y timeframes
  GET  /api/tickers                               → tickers agregados
  GET  /api/candles/{instrument}/{timeframe}      → velas (backfill si vacío)
  GET  /api/patterns/{instrument}/{timeframe}     → últimos patrones
  GET  /api/decisions/{instrument}/{timeframe}    → última decisión
  GET  /api/indicators/{instrument}/{timeframe}   → último snapshot de indicadores
"""

from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import APIRouter, WebSocket

from marketlens.domain.value_objects.tick import SeriesKey
from marketlens.presentation.api.schemas import HealthResponse, InstrumentsResponse
from marketlens.shared.logging.logger import get_logger

logger = get_logger("api.routes")

router = APIRouter()

# Referencias a componentes inyectados desde main.py
_hub = None
_store = None
_aggregator = None
_backfill = None
_event_bus = None
_connectors: Dict[str, object] = {}
_instruments: List[str] = []
_timeframes: List[str] = []


def init_routes(
    hub,
    store,
    aggregator,
    backfill=None,
    connectors: Optional[Dict[str, object]] = None,
    instruments: Optional[List[str]] = None,
    timeframes: Optional[List[str]] = None,
    event_bus=None,
) -> None:
    """Inyectar dependencias desde main.py al arrancar."""
    global _hub, _store, _aggregator, _backfill, _event_bus
    global _connectors, _instruments, _timeframes
    _hub = hub
    _store = store
    _aggregator = aggregator
    _backfill = backfill
    _event_bus = event_bus
    _connectors = dict(connectors or {})
    _instruments = list(instruments or [])
    _timeframes = list(timeframes or [])


def _unknown(instrument: str, timeframe: str) -> dict:
    return {"error": f"Unknown instrument/timeframe: {instrument}/{timeframe}"}


def _known(instrument: str, timeframe: str) -> bool:
    return _store is not None and _store.has(SeriesKey(instrument, timeframe))


# ─── WebSocket endpoint ────────────────────────────────────────────────

@router.websocket("/ws")
async def client_stream(websocket: WebSocket) -> None:
    """El ciclo de vida y el protocolo los maneja BroadcastHub."""
    if _hub is None:
        await websocket.close(code=1011, reason="Server not ready")
        return
    await _hub.serve(websocket)


# ─── Estado ────────────────────────────────────────────────────────────

@router.get("/health", response_model=HealthResponse)
async def health_check() -> dict:
    """Health check: exchanges, clientes, series y colas del bus."""
    return {
        "status": "ok",
        "service": "marketlens",
        "exchanges": {name: c.stats for name, c in _connectors.items()},
        "clients": _hub.client_count if _hub else 0,
        "series": _store.snapshot() if _store else None,
        "event_bus": _event_bus.stats if _event_bus else None,
    }


@router.get("/api/instruments", response_model=InstrumentsResponse)
async def get_instruments() -> dict:
    return {"instruments": _instruments, "timeframes": _timeframes}


@router.get("/api/tickers")
async def get_tickers() -> dict:
    if _aggregator is None:
        return {"error": "Server not ready"}
    return {
        instrument: ticker.to_dict()
        for instrument, ticker in _aggregator.tickers().items()
    }


# ─── Series ────────────────────────────────────────────────────────────

@router.get("/api/candles/{instrument}/{timeframe}")
async def get_candles(instrument: str, timeframe: str) -> dict:
    """Velas de una clave; dispara backfill si la serie está vacía."""
    if not _known(instrument, timeframe):
        return _unknown(instrument, timeframe)

    key = SeriesKey(instrument, timeframe)
    candles = _store.get(key)
    if not candles and _backfill is not None:
        logger.info("Serie %s vacía – backfill bajo demanda", key.wire)
        candles = await _backfill.load(instrument, timeframe)

    return {
        "instrument": instrument,
        "timeframe": timeframe,
        "count": len(candles),
        "candles": [c.to_dict() for c in candles],
    }


@router.get("/api/patterns/{instrument}/{timeframe}")
async def get_patterns(instrument: str, timeframe: str) -> dict:
    if not _known(instrument, timeframe):
        return _unknown(instrument, timeframe)
    analysis = _store.get_analysis(SeriesKey(instrument, timeframe))
    return {
        "instrument": instrument,
        "timeframe": timeframe,
        "patterns": [p.to_dict() for p in analysis.patterns] if analysis else [],
    }


@router.get("/api/decisions/{instrument}/{timeframe}")
async def get_decision(instrument: str, timeframe: str) -> dict:
    if not _known(instrument, timeframe):
        return _unknown(instrument, timeframe)
    analysis = _store.get_analysis(SeriesKey(instrument, timeframe))
    return {
        "instrument": instrument,
        "timeframe": timeframe,
        "decision": analysis.decision.to_dict() if analysis else None,
    }


@router.get("/api/indicators/{instrument}/{timeframe}")
async def get_indicators(instrument: str, timeframe: str) -> dict:
    if not _known(instrument, timeframe):
        return _unknown(instrument, timeframe)
    analysis = _store.get_analysis(SeriesKey(instrument, timeframe))
    indicators = analysis.indicators if analysis else None
    return {
        "instrument": instrument,
        "timeframe": timeframe,
        "indicators": indicators.to_dict() if indicators else None,
    }
