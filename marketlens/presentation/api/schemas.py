"""
MarketLens – API Schemas (Pydantic)
=====================================
Schemas de validación para la API REST y los mensajes de cliente WS.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ClientMessage(BaseModel):
    """Sobre {type, data} enviado por el cliente WebSocket."""
    type: str
    data: Dict[str, Any] = Field(default_factory=dict)


class SeriesRequest(BaseModel):
    """Payload de "subscribe" / "get_history"."""
    instrument: str
    timeframe: str


class ExchangeStatusSchema(BaseModel):
    running: bool
    connected: bool
    messages_received: int
    events_published: int
    parse_errors: int
    connected_since: float
    reconnect_attempts: int
    exhausted: bool


class HealthResponse(BaseModel):
    status: str
    service: str
    exchanges: Dict[str, ExchangeStatusSchema]
    clients: int
    series: Optional[Dict[str, int]] = None
    event_bus: Optional[Dict[str, Dict[str, Dict[str, int]]]] = None


class InstrumentsResponse(BaseModel):
    instruments: List[str]
    timeframes: List[str]
