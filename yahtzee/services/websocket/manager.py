import asyncio
import logging
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from fastapi import WebSocket

from yahtzee.schemas.game_engine import ActiveGame, PendingGame
from yahtzee.schemas.ws import (
    ConnectedPayload,
    MessageType,
    WSCloseCode,
    WSServerMessage,
)

logger = logging.getLogger(__name__)


@dataclass
class Connection:
    """Represents an active WebSocket connection."""

    connection_id: str
    websocket: WebSocket
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_heartbeat: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ConnectionManager:
    """Fans game snapshots out to every subscribed WebSocket on this server.

    Implements the coordinator's Broadcaster: ``send`` is called once per
    committed mutation with the pending or active game it produced.
    """

    def __init__(
        self,
        heartbeat_interval: int = 30,
        connection_timeout: int = 120,
        server_id: str | None = None,
    ):
        self._server_id = server_id or os.getenv("HOSTNAME", str(uuid.uuid4())[:8])
        self._heartbeat_interval = heartbeat_interval
        self._connection_timeout = connection_timeout

        self._connections: dict[str, Connection] = {}

        # Cleanup task
        self._cleanup_task: asyncio.Task | None = None

        logger.info("ConnectionManager initialized with server_id: %s", self._server_id)

    @property
    def server_id(self) -> str:
        return self._server_id

    async def connect(self, websocket: WebSocket) -> Connection:
        """Register an accepted WebSocket and acknowledge it.

        Args:
            websocket: The accepted WebSocket instance.

        Returns:
            The created Connection object.
        """
        connection_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)

        connection = Connection(
            connection_id=connection_id,
            websocket=websocket,
            connected_at=now,
            last_heartbeat=now,
        )
        self._connections[connection_id] = connection

        logger.info("Connection %s established on server %s", connection_id, self._server_id)

        await self.send_to_connection(
            connection_id,
            WSServerMessage(
                type=MessageType.CONNECTED,
                payload=ConnectedPayload(
                    connection_id=connection_id,
                    server_id=self._server_id,
                ).model_dump(),
            ),
        )

        return connection

    async def disconnect(self, connection_id: str) -> None:
        """Forget a connection. Unknown ids are ignored."""
        connection = self._connections.pop(connection_id, None)
        if connection is None:
            logger.debug("Connection %s not found locally for disconnect", connection_id)
            return
        logger.info("Connection %s disconnected", connection_id)

    async def heartbeat(self, connection_id: str) -> None:
        connection = self._connections.get(connection_id)
        if connection:
            connection.last_heartbeat = datetime.now(timezone.utc)
            logger.debug("Heartbeat updated for connection %s", connection_id)

    async def cleanup_stale_connections(self) -> None:
        """Remove connections that have exceeded the timeout period."""
        now = datetime.now(timezone.utc)
        stale_connections = []

        # Snapshot the connections to avoid RuntimeError if dict is modified during iteration
        for conn_id, connection in list(self._connections.items()):
            elapsed = (now - connection.last_heartbeat).total_seconds()
            if elapsed > self._connection_timeout:
                stale_connections.append(conn_id)
                logger.warning(
                    "Connection %s is stale (%.1fs since heartbeat)",
                    conn_id,
                    elapsed,
                )

        for conn_id in stale_connections:
            connection = self._connections.get(conn_id)
            if connection:
                try:
                    await connection.websocket.close(code=WSCloseCode.GOING_AWAY)
                except Exception as e:
                    logger.debug("Error closing stale websocket %s: %s", conn_id, e)
            await self.disconnect(conn_id)

        if stale_connections:
            logger.info("Cleaned up %d stale connections", len(stale_connections))

    async def start_cleanup_task(self) -> None:
        """Start the periodic cleanup task for stale connections."""
        if self._cleanup_task is not None:
            logger.warning("Cleanup task already running")
            return

        async def cleanup_loop():
            logger.info("Starting cleanup task with interval %ds", self._heartbeat_interval)
            while True:
                try:
                    await asyncio.sleep(self._heartbeat_interval)
                    await self.cleanup_stale_connections()
                except asyncio.CancelledError:
                    logger.info("Cleanup task cancelled")
                    break
                except Exception as e:
                    logger.error("Error in cleanup task: %s", e)

        self._cleanup_task = asyncio.create_task(cleanup_loop())

    async def stop_cleanup_task(self) -> None:
        """Stop the periodic cleanup task."""
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
            logger.info("Cleanup task stopped")

    async def close_all_connections(self) -> None:
        """Close all active WebSocket connections gracefully."""
        logger.info("Closing all %d connections", len(self._connections))
        for conn_id in list(self._connections.keys()):
            connection = self._connections.get(conn_id)
            if connection:
                try:
                    await connection.websocket.close(code=WSCloseCode.GOING_AWAY)
                except Exception as e:
                    logger.debug("Error closing websocket %s: %s", conn_id, e)
            await self.disconnect(conn_id)

    async def send_to_connection(self, connection_id: str, message: WSServerMessage) -> bool:
        """Send a message to a specific connection.

        A connection whose send fails is dropped.

        Returns:
            True if sent successfully, False otherwise.
        """
        connection = self._connections.get(connection_id)
        if connection is None:
            logger.debug("Connection %s not found for sending", connection_id)
            return False

        try:
            await connection.websocket.send_json(message.model_dump(mode="json", exclude_none=True))
            return True
        except Exception as e:
            logger.warning("Failed to send to connection %s: %s", connection_id, e)
            await self.disconnect(connection_id)
            return False

    async def broadcast(self, message: WSServerMessage) -> int:
        """Broadcast a message to all connections on this server.

        Returns:
            Number of connections the message was sent to.
        """
        sent = 0
        for conn_id in list(self._connections.keys()):
            if await self.send_to_connection(conn_id, message):
                sent += 1
        return sent

    async def send(self, game: PendingGame | ActiveGame) -> None:
        """Publish a game snapshot to every subscriber."""
        message_type = (
            MessageType.PENDING_UPDATED
            if isinstance(game, PendingGame)
            else MessageType.ACTIVE_UPDATED
        )
        sent = await self.broadcast(
            WSServerMessage(type=message_type, payload=game.model_dump(mode="json"))
        )
        logger.debug("Broadcast %s for game %s to %d connections", message_type.value, game.id, sent)

    def get_connection(self, connection_id: str) -> Connection | None:
        """Get a connection by ID (local only)."""
        return self._connections.get(connection_id)

    def get_total_connection_count(self) -> int:
        """Get the total number of local connections."""
        return len(self._connections)
