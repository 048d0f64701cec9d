"""Application ports - Interfaces to infrastructure."""
from marketlens.application.ports.event_publisher import IEventPublisher
from marketlens.application.ports.cache_gateway import ICacheGateway
from marketlens.application.ports.history_provider import IHistoryProvider

__all__ = [
    "IEventPublisher",
    "ICacheGateway",
    "IHistoryProvider",
]
