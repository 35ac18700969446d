from enum import Enum
from typing import Any

from pydantic import BaseModel


class MessageType(str, Enum):
    """WebSocket message types."""

    # Core
    PING = "ping"
    PONG = "pong"
    CONNECTED = "connected"
    ERROR = "error"

    # Game updates
    PENDING_UPDATED = "pending_updated"
    ACTIVE_UPDATED = "active_updated"


class WSCloseCode:
    """WebSocket close codes (RFC 6455)."""

    GOING_AWAY = 1001


class WSClientMessage(BaseModel):
    """Message sent from client to server."""

    type: MessageType
    payload: dict[str, Any] | None = None


class WSServerMessage(BaseModel):
    """Message sent from server to client."""

    type: MessageType
    payload: dict[str, Any] | None = None


# --- Payload schemas ---


class ConnectedPayload(BaseModel):
    connection_id: str
    server_id: str


class ErrorPayload(BaseModel):
    error_code: str
    message: str
