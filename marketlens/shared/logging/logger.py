"""
MarketLens – Logging configuration
====================================
Un único handler a stdout en el root logger; los módulos piden su
logger con get_logger("<componente>") → "marketlens.<componente>".

El nivel llega como texto desde Settings.log_level ("DEBUG", "info"…).
Las librerías de red quedan en WARNING salvo que se pida DEBUG.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-34s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers de terceros que inundan INFO con cada frame / request
NOISY_LOGGERS = ("websockets", "httpx", "httpcore", "redis", "uvicorn.access")

_HANDLER_NAME = "marketlens-stdout"


def resolve_level(level: int | str) -> int:
    """'info' / 'INFO' / 20 → 20. Un nombre desconocido cae a INFO."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: int | str = logging.INFO) -> int:
    """Configura el root logger; idempotente. Retorna el nivel aplicado."""
    numeric = resolve_level(level)
    root = logging.getLogger()

    if not any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)
    root.setLevel(numeric)

    third_party = logging.DEBUG if numeric <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party)
    return numeric


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"marketlens.{name}")
