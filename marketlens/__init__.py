"""MarketLens – motor de agregación y análisis de mercado cripto multi-exchange."""

__version__ = "0.1.0"
