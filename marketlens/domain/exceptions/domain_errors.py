"""
MarketLens – Domain Exceptions
================================
Excepciones específicas del dominio.

JERARQUÍA:
    DomainError (base)
    └── ParseError

La falta de historia suficiente NO es una excepción: las funciones de
patrones e indicadores devuelven None y el llamador decide.
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Excepción base para errores de dominio."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ParseError(DomainError):
    """Campo ausente o no numérico en un evento entrante. El evento se descarta."""

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value
