"""
Dependency Injection Container.

Este módulo proporciona el contenedor de inyección de dependencias
que gestiona todas las instancias de estado, conectores y casos de uso.

Clean Architecture: Este contenedor vive en la capa más externa y es el único
lugar donde se crean dependencias concretas.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Application
from marketlens.application.ports.cache_gateway import ICacheGateway
from marketlens.application.ports.history_provider import IHistoryProvider
from marketlens.application.state.candle_store import CandleStore
from marketlens.application.state.price_aggregator import PriceAggregator
from marketlens.application.use_cases.backfill_usecase import BackfillUseCase
from marketlens.application.use_cases.process_market_event_usecase import (
    ProcessMarketEventUseCase,
)

# Domain
from marketlens.domain.value_objects.tick import SeriesKey

# Infrastructure
from marketlens.infrastructure.event_bus import EventBus
from marketlens.infrastructure.exchanges.base import ExchangeConnector
from marketlens.infrastructure.exchanges.binance import BinanceConnector
from marketlens.infrastructure.exchanges.coinbase import CoinbaseConnector
from marketlens.infrastructure.exchanges.kraken import KrakenConnector
from marketlens.infrastructure.exchanges.supervisor import ConnectionSupervisor

# Presentation
from marketlens.presentation.websocket.broadcast_hub import BroadcastHub

# Shared
from marketlens.shared.config.settings import Settings
from marketlens.shared.config.symbols import display_name


@dataclass
class Container:
    """
    Contenedor de Inyección de Dependencias.

    Cada dependencia se crea perezosamente la primera vez que se pide
    y se comparte (singleton por contenedor).
    """

    # Configuración
    settings: Settings = field(default_factory=Settings)

    # Infraestructura
    _event_bus: Optional[EventBus] = None
    _history_provider: Optional[IHistoryProvider] = None
    _cache_gateway: Optional[ICacheGateway] = None
    _binance_connector: Optional[ExchangeConnector] = None
    _coinbase_connector: Optional[ExchangeConnector] = None
    _kraken_connector: Optional[ExchangeConnector] = None

    # Estado + casos de uso
    _candle_store: Optional[CandleStore] = None
    _price_aggregator: Optional[PriceAggregator] = None
    _processor: Optional[ProcessMarketEventUseCase] = None
    _backfill: Optional[BackfillUseCase] = None

    # Presentación
    _hub: Optional[BroadcastHub] = None

    # ==================== Configuración derivada ====================

    @property
    def instruments(self) -> List[str]:
        """Instrumentos internos (BTC_USDT, ...) de los símbolos configurados."""
        return [
            name for name in (display_name(s) for s in self.settings.instruments)
            if name is not None
        ]

    @property
    def series_keys(self) -> List[SeriesKey]:
        return [
            SeriesKey(instrument, tf)
            for instrument in self.instruments
            for tf in self.settings.timeframes
        ]

    # ==================== Estado ====================

    @property
    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            self._event_bus = EventBus(max_queue_size=self.settings.event_bus_max_queue_size)
        return self._event_bus

    @property
    def candle_store(self) -> CandleStore:
        if self._candle_store is None:
            self._candle_store = CandleStore(
                keys=self.series_keys,
                capacity=self.settings.max_candles_buffer,
            )
        return self._candle_store

    @property
    def price_aggregator(self) -> PriceAggregator:
        if self._price_aggregator is None:
            self._price_aggregator = PriceAggregator()
        return self._price_aggregator

    # ==================== Ports ====================

    @property
    def history_provider(self) -> IHistoryProvider:
        if self._history_provider is None:
            from marketlens.infrastructure.rest.binance_history_client import BinanceHistoryClient
            self._history_provider = BinanceHistoryClient(
                base_url=self.settings.binance_rest_url,
                timeout=self.settings.http_timeout_seconds,
            )
        return self._history_provider

    @property
    def cache_gateway(self) -> Optional[ICacheGateway]:
        """Cache Redis si está habilitada; None en caso contrario."""
        if not self.settings.cache_enabled:
            return self._cache_gateway
        if self._cache_gateway is None:
            from marketlens.infrastructure.cache.redis_cache_gateway import RedisCacheGateway
            self._cache_gateway = RedisCacheGateway(
                url=self.settings.redis_url,
                timeout=self.settings.redis_timeout_seconds,
            )
        return self._cache_gateway

    # ==================== Use Cases ====================

    @property
    def processor(self) -> ProcessMarketEventUseCase:
        if self._processor is None:
            self._processor = ProcessMarketEventUseCase(
                publisher=self.event_bus,
                store=self.candle_store,
                aggregator=self.price_aggregator,
                min_candles_patterns=self.settings.min_candles_patterns,
                min_candles_indicators=self.settings.min_candles_indicators,
                broadcast_candles=self.settings.broadcast_candles,
            )
        return self._processor

    @property
    def backfill(self) -> BackfillUseCase:
        if self._backfill is None:
            self._backfill = BackfillUseCase(
                store=self.candle_store,
                processor=self.processor,
                history=self.history_provider,
                cache=self.cache_gateway,
                limit=self.settings.backfill_limit,
                cache_ttl=self.settings.cache_ttl_seconds,
                pause_seconds=self.settings.backfill_pause_seconds,
            )
        return self._backfill

    # ==================== Conectores ====================

    def _supervisor(self, name: str) -> ConnectionSupervisor:
        return ConnectionSupervisor(
            name,
            base_delay=self.settings.ws_reconnect_base_delay,
            backoff_cap=self.settings.ws_reconnect_backoff_cap,
            max_attempts=self.settings.ws_reconnect_max_attempts,
        )

    @property
    def binance_connector(self) -> ExchangeConnector:
        if self._binance_connector is None:
            self._binance_connector = BinanceConnector(
                self.event_bus,
                self.settings.binance_ws_url,
                self._supervisor("binance"),
                on_connected=self.backfill.backfill_all,
                symbols=self.settings.instruments,
                timeframes=self.settings.timeframes,
            )
        return self._binance_connector

    @property
    def coinbase_connector(self) -> ExchangeConnector:
        if self._coinbase_connector is None:
            self._coinbase_connector = CoinbaseConnector(
                self.event_bus,
                self.settings.coinbase_ws_url,
                self._supervisor("coinbase"),
                instruments=self.instruments,
            )
        return self._coinbase_connector

    @property
    def kraken_connector(self) -> ExchangeConnector:
        if self._kraken_connector is None:
            self._kraken_connector = KrakenConnector(
                self.event_bus,
                self.settings.kraken_ws_url,
                self._supervisor("kraken"),
                instruments=self.instruments,
            )
        return self._kraken_connector

    @property
    def connectors(self) -> Dict[str, ExchangeConnector]:
        return {
            "binance": self.binance_connector,
            "coinbase": self.coinbase_connector,
            "kraken": self.kraken_connector,
        }

    # ==================== Presentación ====================

    @property
    def hub(self) -> BroadcastHub:
        if self._hub is None:
            self._hub = BroadcastHub(
                event_bus=self.event_bus,
                store=self.candle_store,
                aggregator=self.price_aggregator,
                processor=self.processor,
                backfill=self.backfill,
                send_timeout=self.settings.ws_send_timeout_seconds,
                broadcast_candles=self.settings.broadcast_candles,
            )
        return self._hub

    # ==================== Lifecycle ====================

    def reset(self) -> None:
        """Resetea todas las instancias (útil para tests)."""
        self._event_bus = None
        self._history_provider = None
        self._cache_gateway = None
        self._binance_connector = None
        self._coinbase_connector = None
        self._kraken_connector = None
        self._candle_store = None
        self._price_aggregator = None
        self._processor = None
        self._backfill = None
        self._hub = None

    def override(self, name: str, instance: Any) -> None:
        """
        Override una dependencia (útil para tests con mocks).

        Args:
            name: Nombre de la dependencia (ej: 'history_provider')
            instance: Instancia mock a usar
        """
        attr_name = f"_{name}"
        if hasattr(self, attr_name):
            setattr(self, attr_name, instance)
        else:
            raise ValueError(f"Unknown dependency: {name}")


# ==================== Global Container ====================

_container: Optional[Container] = None


def get_container() -> Container:
    """Instancia global del contenedor (se crea si no existe)."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def reset_container() -> None:
    """Resetea el contenedor global."""
    global _container
    if _container is not None:
        _container.reset()
    _container = None


def init_container(settings: Optional[Settings] = None) -> Container:
    """
    Inicializa el contenedor con configuración específica.

    Args:
        settings: Configuración opcional. Si es None, usa valores por defecto.
    """
    global _container
    if settings is None:
        settings = Settings()
    _container = Container(settings=settings)
    return _container
