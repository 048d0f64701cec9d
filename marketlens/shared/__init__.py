"""
MarketLens – Shared Module
============================
Utilidades transversales usadas por todas las capas.

Este módulo contiene:
- config/: Settings y tablas de símbolos por exchange
- logging/: Setup de logging

NOTA: Este módulo no contiene lógica de negocio.
"""

from marketlens.shared.config.settings import settings
from marketlens.shared.logging.logger import setup_logging, get_logger

__all__ = [
    "settings",
    "setup_logging",
    "get_logger",
]
