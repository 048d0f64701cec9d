"""Application services de orquestación."""
from marketlens.application.services.analysis import analyze_series

__all__ = ["analyze_series"]
