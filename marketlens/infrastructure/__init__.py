"""
MarketLens – Infrastructure Layer
===================================
Implementaciones concretas de los ports de aplicación.

- event_bus.py: EventBus (asyncio.Queue fan-out)
- exchanges/: conectores WebSocket Binance / Coinbase / Kraken
- rest/: histórico REST de Binance (httpx)
- cache/: cache Redis opcional
"""
