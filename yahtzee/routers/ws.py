import logging
import time
from collections import defaultdict

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from yahtzee.schemas.ws import (
    ErrorPayload,
    MessageType,
    WSClientMessage,
    WSServerMessage,
)
from yahtzee.services.websocket import ConnectionManager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])

# Rate limiting configuration
MAX_MESSAGE_SIZE = 64 * 1024  # 64 KB
MAX_MESSAGES_PER_SECOND = 10
RATE_LIMIT_WINDOW = 1.0  # seconds


class RateLimiter:
    """Sliding window rate limiter per connection."""

    def __init__(
        self, max_tokens: int = MAX_MESSAGES_PER_SECOND, window: float = RATE_LIMIT_WINDOW
    ):
        self.max_tokens = max_tokens
        self.window = window
        self._tokens: dict[str, list[float]] = defaultdict(list)

    def is_allowed(self, connection_id: str) -> bool:
        now = time.monotonic()
        cutoff = now - self.window

        self._tokens[connection_id] = [t for t in self._tokens[connection_id] if t > cutoff]
        if len(self._tokens[connection_id]) >= self.max_tokens:
            return False

        self._tokens[connection_id].append(now)
        return True

    def remove(self, connection_id: str) -> None:
        self._tokens.pop(connection_id, None)


_rate_limiter = RateLimiter()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint for game update subscriptions.

    Clients connect with: ws://host/api/v1/ws

    Every committed change to a pending or active game is pushed as a
    'pending_updated' or 'active_updated' message. Clients keep the
    connection alive by sending 'ping'.
    """
    manager: ConnectionManager = websocket.app.state.connection_manager

    await websocket.accept()
    connection = await manager.connect(websocket)

    try:
        while True:
            raw_text = await websocket.receive_text()

            if len(raw_text.encode("utf-8")) > MAX_MESSAGE_SIZE:
                logger.warning(
                    "Message too large from connection %s",
                    connection.connection_id,
                )
                await manager.send_to_connection(
                    connection.connection_id,
                    WSServerMessage(
                        type=MessageType.ERROR,
                        payload=ErrorPayload(
                            error_code="MESSAGE_TOO_LARGE",
                            message=f"Message exceeds maximum size of {MAX_MESSAGE_SIZE} bytes",
                        ).model_dump(),
                    ),
                )
                continue

            if not _rate_limiter.is_allowed(connection.connection_id):
                logger.warning("Rate limit exceeded for connection %s", connection.connection_id)
                await manager.send_to_connection(
                    connection.connection_id,
                    WSServerMessage(
                        type=MessageType.ERROR,
                        payload=ErrorPayload(
                            error_code="RATE_LIMITED",
                            message="Too many messages, please slow down",
                        ).model_dump(),
                    ),
                )
                continue

            try:
                message = WSClientMessage.model_validate_json(raw_text)
            except ValidationError as e:
                logger.warning(
                    "Invalid message from connection %s: %s",
                    connection.connection_id,
                    e,
                )
                await manager.send_to_connection(
                    connection.connection_id,
                    WSServerMessage(
                        type=MessageType.ERROR,
                        payload=ErrorPayload(
                            error_code="INVALID_MESSAGE",
                            message="Invalid message format",
                        ).model_dump(),
                    ),
                )
                continue

            if message.type == MessageType.PING:
                await manager.heartbeat(connection.connection_id)
                await manager.send_to_connection(
                    connection.connection_id,
                    WSServerMessage(type=MessageType.PONG),
                )
            else:
                logger.debug(
                    "Unhandled message type %s from connection %s",
                    message.type,
                    connection.connection_id,
                )

    except WebSocketDisconnect as e:
        logger.info(
            "WS disconnected: connection %s, code %s",
            connection.connection_id,
            e.code,
        )
    finally:
        _rate_limiter.remove(connection.connection_id)
        await manager.disconnect(connection.connection_id)
