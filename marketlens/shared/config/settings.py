"""
MarketLens – Settings (Pydantic BaseSettings)
=============================================
Configuración centralizada cargada desde variables de entorno / .env.
Se usa pydantic-settings para validación estricta al arranque.

Las tablas estáticas de símbolos por exchange viven en symbols.py;
aquí solo se declaran los parámetros operativos.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List


class Settings(BaseSettings):
    # ─── Instrumentos ───────────────────────────────────────────────────
    instruments: List[str] = Field(
        default=[
            "BTCUSDT", "ETHUSDT", "BNBUSDT", "XRPUSDT", "ADAUSDT",
            "SOLUSDT", "DOGEUSDT", "DOTUSDT", "MATICUSDT", "LTCUSDT",
        ],
        description="Símbolos Binance a seguir (top 10 pares USDT)",
    )
    timeframes: List[str] = Field(
        default=["1m", "5m", "15m", "1h", "4h"],
        description="Marcos temporales de velas a mantener por instrumento",
    )

    # ─── Candle Store ───────────────────────────────────────────────────
    max_candles_buffer: int = Field(
        default=100, description="Máximo de velas en memoria por (instrumento, timeframe)"
    )
    min_candles_patterns: int = Field(
        default=3, description="Historia mínima para reconocer patrones y decidir"
    )
    min_candles_indicators: int = Field(
        default=30, description="Historia mínima para el snapshot de indicadores"
    )
    broadcast_candles: int = Field(
        default=50, description="Velas de cola enviadas en cada candle_update"
    )

    # ─── Exchanges (WebSocket) ──────────────────────────────────────────
    binance_ws_url: str = Field(
        default="wss://stream.binance.com:9443/stream",
        description="Endpoint de streams combinados de Binance",
    )
    coinbase_ws_url: str = Field(
        default="wss://ws-feed.exchange.coinbase.com",
        description="Feed WebSocket de Coinbase Exchange",
    )
    kraken_ws_url: str = Field(
        default="wss://ws.kraken.com",
        description="WebSocket público de Kraken (v1)",
    )

    # ─── Reconexión ─────────────────────────────────────────────────────
    ws_reconnect_base_delay: float = Field(
        default=5.0, description="Delay base (seg) entre reconexiones"
    )
    ws_reconnect_backoff_cap: int = Field(
        default=5, description="Multiplicador máximo del delay base (delay = base × min(intento, cap))"
    )
    ws_reconnect_max_attempts: int = Field(
        default=10, description="Intentos consecutivos antes de abandonar un exchange"
    )

    # ─── Backfill histórico (REST) ──────────────────────────────────────
    binance_rest_url: str = Field(
        default="https://api.binance.com",
        description="Base URL del API REST de Binance",
    )
    backfill_limit: int = Field(default=100, description="Velas por petición de histórico")
    backfill_pause_seconds: float = Field(
        default=0.1, description="Pausa entre peticiones de histórico (rate limit)"
    )
    http_timeout_seconds: float = Field(default=10.0, description="Timeout de peticiones HTTP")

    # ─── Cache externo (opcional) ───────────────────────────────────────
    cache_enabled: bool = Field(default=False, description="Habilitar cache Redis de velas")
    redis_url: str = Field(default="redis://localhost:6379/0", description="URL de Redis")
    cache_ttl_seconds: int = Field(default=300, description="TTL de las series cacheadas")
    redis_timeout_seconds: float = Field(
        default=1.0, description="Timeout de conexión y lectura de Redis"
    )

    # ─── Event Bus ──────────────────────────────────────────────────────
    event_bus_max_queue_size: int = Field(
        default=10_000,
        description="Tamaño máximo de cola del Event Bus para contrapresión",
    )

    # ─── Clientes WebSocket ─────────────────────────────────────────────
    ws_send_timeout_seconds: float = Field(
        default=5.0, description="Timeout por envío a un cliente antes de podarlo"
    )

    # ─── Server ─────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001)
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO", description="Nivel del root logger")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Singleton global – se importa donde se necesite
settings = Settings()
