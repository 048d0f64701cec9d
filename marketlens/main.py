"""
MarketLens – Main Application Entry Point
===========================================
Orquesta todos los componentes: conectores de exchange + pipeline de
análisis + broadcast a clientes.

ARQUITECTURA DE ARRANQUE:
  1. Configurar logging
  2. Crear el contenedor (instancias perezosas)
  3. FastAPI lifespan startup:
     a. Iniciar BroadcastHub (broadcast loops)
     b. Iniciar ProcessMarketEventUseCase (consumer de market_event)
     c. Iniciar conectores Binance / Coinbase / Kraken
  4. FastAPI lifespan shutdown:
     a. Detener todo en orden inverso

FLUJO DE DATOS:
  Exchanges WS → Connectors → EventBus(market_event) → ProcessMarketEventUseCase
       → PriceAggregator → EventBus(ticker)
       → CandleStore → patrones / indicadores / decisión → EventBus(candle_update)
       → BroadcastHub → Clientes
  Binance conectado → BackfillUseCase.backfill_all() (REST + cache opcional)

  uvicorn marketlens.main:app --host 0.0.0.0 --port 3001
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from marketlens import __version__
from marketlens.application.use_cases.process_market_event_usecase import MARKET_EVENT_TOPIC
from marketlens.container import Container, init_container
from marketlens.presentation.api.routes import init_routes, router
from marketlens.shared.config.settings import settings
from marketlens.shared.logging.logger import get_logger, setup_logging

# ─── Logging ────────────────────────────────────────────────────────────
setup_logging(settings.log_level)
logger = get_logger("main")

# ─── Contenedor de Dependencias ─────────────────────────────────────────
container = init_container(settings)


async def startup(c: Container) -> asyncio.Task:
    """Arrancar hub, pipeline y conectores. Retorna la task del pipeline."""
    init_routes(
        c.hub,
        c.candle_store,
        c.price_aggregator,
        backfill=c.backfill,
        connectors=c.connectors,
        instruments=c.instruments,
        timeframes=c.settings.timeframes,
        event_bus=c.event_bus,
    )

    await c.hub.start()

    queue = await c.event_bus.subscribe(MARKET_EVENT_TOPIC, "process_market_event")
    processing = asyncio.create_task(c.processor.run(queue), name="process-market-event")

    for connector in c.connectors.values():
        await connector.start()

    logger.info("✓ Todos los componentes iniciados correctamente")
    return processing


async def shutdown(c: Container, processing: Optional[asyncio.Task]) -> None:
    """Detener en orden inverso: conectores → pipeline → hub → clientes externos."""
    logger.info("Iniciando shutdown...")

    for connector in c.connectors.values():
        await connector.stop()

    await c.processor.stop()
    if processing is not None and not processing.done():
        processing.cancel()
        try:
            await processing
        except asyncio.CancelledError:
            pass

    await c.backfill.close()
    await c.hub.stop()

    history = c.history_provider
    if hasattr(history, "close"):
        await history.close()
    if c.cache_gateway is not None:
        await c.cache_gateway.close()

    await c.event_bus.unsubscribe_all()
    logger.info("✓ Shutdown completo")


# ─── FastAPI Lifespan ───────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup/shutdown lifecycle de la aplicación.
    Todas las coroutines de larga duración se lanzan como tasks.
    """
    logger.info("=" * 60)
    logger.info("  MarketLens v%s", __version__)
    logger.info("  Instrumentos: %s", ", ".join(container.instruments))
    logger.info("  Timeframes: %s", ", ".join(settings.timeframes))
    logger.info("  Buffer máximo: %d velas por serie", settings.max_candles_buffer)
    logger.info(
        "  Reconexión: base=%.1fs cap=×%d max=%d intentos",
        settings.ws_reconnect_base_delay,
        settings.ws_reconnect_backoff_cap,
        settings.ws_reconnect_max_attempts,
    )
    logger.info("  Cache: %s", "Redis" if settings.cache_enabled else "deshabilitada")
    logger.info("=" * 60)

    processing = await startup(container)

    yield  # ← La app está corriendo aquí

    await shutdown(container, processing)


# ─── FastAPI App ────────────────────────────────────────────────────────

app = FastAPI(
    title="MarketLens",
    description="Agregación multi-exchange de datos de mercado cripto con patrones, indicadores y decisiones en tiempo real",
    version=__version__,
    lifespan=lifespan,
)

# CORS para clientes web
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("marketlens.main:app", host=settings.host, port=settings.port, reload=settings.debug)
