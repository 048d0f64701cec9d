"""Domain exceptions."""
from marketlens.domain.exceptions.domain_errors import DomainError, ParseError

__all__ = ["DomainError", "ParseError"]
