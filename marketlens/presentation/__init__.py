"""
MarketLens – Presentation Layer
=================================
API HTTP y WebSocket.

Este módulo contiene:
- api/: FastAPI routes y schemas
- websocket/: BroadcastHub (clientes en tiempo real)

REGLA DE DEPENDENCIA:
Esta capa llama a use cases y estado de application/.
"""
