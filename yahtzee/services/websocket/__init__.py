"""WebSocket services for broadcasting game updates."""

from .manager import Connection, ConnectionManager

__all__ = [
    "Connection",
    "ConnectionManager",
]
