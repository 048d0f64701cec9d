"""
MarketLens – Domain Layer
===========================
Núcleo puro del sistema. Sin I/O.

Este módulo contiene:
- entities/: Candle, Pattern, Decision
- value_objects/: eventos normalizados, TickerState, resultados de indicadores
- services/: motores puros (patrones, indicadores, ondas, decisión)
- exceptions/: Excepciones de dominio

REGLA DE DEPENDENCIA:
Este módulo NO puede importar de:
- infrastructure/
- presentation/
- application/
- Frameworks web (FastAPI, websockets, httpx, redis)
"""
