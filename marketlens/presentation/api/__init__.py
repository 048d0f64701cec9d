"""REST API."""
from marketlens.presentation.api.routes import router, init_routes

__all__ = ["router", "init_routes"]
