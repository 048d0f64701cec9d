"""WebSocket hacia clientes."""
from marketlens.presentation.websocket.broadcast_hub import BroadcastHub

__all__ = ["BroadcastHub"]
