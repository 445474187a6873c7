"""Registry of live real-time connections.

SessionRegistry — maps connection_id → Connection
Connection — one open WebSocket, its identity and conversation subscriptions
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Set

from starlette.websockets import WebSocket, WebSocketState

from chat_relay.errors import ConnectionLimitError, DuplicateConnectionError, UnknownConnectionError
from chat_relay.llm_base_models import ConversationKey

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Connection:
    """A registered real-time connection. Hashes by identity."""
    connection_id: str
    websocket: Optional[WebSocket] = None
    user_id: Optional[str] = None
    username: Optional[str] = None
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_activity: float = field(default_factory=time.monotonic)
    subscriptions: Set[ConversationKey] = field(default_factory=set)

    @property
    def is_identified(self) -> bool:
        return self.user_id is not None

    def connected_seconds(self) -> float:
        return (datetime.now(timezone.utc) - self.connected_at).total_seconds()

    async def send(self, event: str, payload: Dict[str, Any]) -> bool:
        """Send one ``{"type": event, ...payload}`` frame.

        Returns False without raising when the socket is gone or the send fails.
        """
        ws = self.websocket
        if ws is None or ws.client_state != WebSocketState.CONNECTED:
            return False
        try:
            await ws.send_json({"type": event, **payload})
            return True
        except Exception as e:
            logger.debug(f"[WS] Send to {self.connection_id} failed: {e}")
            return False


class SessionRegistry:
    """Maps connection_id → Connection. Mutated only from the event loop."""

    def __init__(self, *, max_connections: int = 1000):
        self.max_connections = max_connections
        self._connections: Dict[str, Connection] = {}

    def register(self, connection_id: str, websocket: Optional[WebSocket] = None) -> Connection:
        """Create a Connection with no identity yet.

        Raises:
            DuplicateConnectionError: If the id is already registered
            ConnectionLimitError: If ``max_connections`` are already live
        """
        if connection_id in self._connections:
            raise DuplicateConnectionError(connection_id)
        if len(self._connections) >= self.max_connections:
            raise ConnectionLimitError(connection_id, self.max_connections)

        connection = Connection(connection_id=connection_id, websocket=websocket)
        self._connections[connection_id] = connection
        logger.info(f"[REGISTRY] Registered connection {connection_id}")
        return connection

    def identify(self, connection_id: str, user_id: Optional[str], username: Optional[str]) -> Connection:
        """Bind a user identity to a live connection.

        Raises:
            UnknownConnectionError: If the connection has already gone away
        """
        connection = self._connections.get(connection_id)
        if connection is None:
            raise UnknownConnectionError(connection_id)
        connection.user_id = user_id
        connection.username = username
        connection.last_activity = time.monotonic()
        logger.info(f"[REGISTRY] Identified connection {connection_id} as user {user_id}")
        return connection

    def unregister(self, connection_id: str) -> Optional[Connection]:
        """Remove a connection. Removing an unknown id is a no-op."""
        connection = self._connections.pop(connection_id, None)
        if connection:
            logger.info(
                f"[REGISTRY] Removed connection {connection_id} "
                f"(user={connection.user_id}, connected {connection.connected_seconds():.1f}s)"
            )
        return connection

    def get_connection(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def subscribe(self, connection_id: str, key: ConversationKey) -> bool:
        """Have a connection follow a conversation. False if the connection is gone."""
        connection = self._connections.get(connection_id)
        if connection is None:
            return False
        if key not in connection.subscriptions:
            connection.subscriptions.add(key)
            logger.debug(f"[REGISTRY] {connection_id} subscribed to {key}")
        return True

    def broadcast_targets(self, key: Optional[ConversationKey] = None) -> Set[Connection]:
        """Live connections to fan out to: all of them, or the subscribers of ``key``."""
        if key is None:
            return set(self._connections.values())
        return {c for c in self._connections.values() if key in c.subscriptions}

    @property
    def active_count(self) -> int:
        return len(self._connections)
