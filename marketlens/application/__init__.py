"""
MarketLens – Application Layer
================================
Capa de casos de uso y orquestación.

Este módulo contiene:
- use_cases/: Procesamiento de eventos de mercado y backfill
- state/: CandleStore y PriceAggregator (estado en memoria)
- services/: Recalculo de análisis por serie
- ports/: Interfaces hacia infraestructura
- dto/: Data Transfer Objects

REGLA DE DEPENDENCIA:
Esta capa puede importar de:
- domain/ (entidades, servicios, value objects)
- ports/ propios (interfaces hacia infra)

NO puede importar de:
- infrastructure/ (implementaciones concretas)
- presentation/ (API)
"""
