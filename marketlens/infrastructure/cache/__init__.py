"""Cache externa opcional de series."""
from marketlens.infrastructure.cache.redis_cache_gateway import RedisCacheGateway

__all__ = ["RedisCacheGateway"]
