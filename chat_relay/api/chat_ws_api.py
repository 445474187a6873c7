"""WebSocket channel for real-time chat.

Frames are JSON objects with a ``type`` field.

Client → server: ``identify``, ``typing``, ``send-message``, ``heartbeat``
Server → client: ``connected``, ``user-typing``, ``new-message``, ``error``,
``heartbeat-ack``
"""

import json
import logging
import time
from typing import TYPE_CHECKING
from uuid import uuid4

from fastapi import APIRouter
from starlette.websockets import WebSocket, WebSocketDisconnect

from chat_relay.errors import ConnectionLimitError
from chat_relay.api.session_registry import Connection, SessionRegistry

if TYPE_CHECKING:
    from chat_relay.chat_coordinator import ChatCoordinator

logger = logging.getLogger(__name__)


# ── WebSocket Router Builder ────────────────────────────────────────


def build_ws_router(coordinator: "ChatCoordinator", registry: SessionRegistry) -> APIRouter:
    """Build a FastAPI APIRouter with the ``/ws`` real-time endpoint."""
    router = APIRouter()

    @router.websocket("/ws")
    async def websocket_chat(ws: WebSocket):
        await ws.accept()
        connection_id = str(uuid4())
        try:
            connection = registry.register(connection_id, ws)
        except ConnectionLimitError as e:
            logger.warning(f"[WS] Rejected connection: {e.message}")
            await ws.send_json({"type": "error", "message": e.public_message})
            await ws.close(code=1013)
            return

        await connection.send("connected", {"connectionId": connection_id})
        logger.info(f"[WS] Client connected as {connection_id}")

        try:
            while True:
                raw = await ws.receive_text()
                try:
                    msg = json.loads(raw)
                except json.JSONDecodeError:
                    await connection.send("error", {"message": "Invalid JSON"})
                    continue
                if not isinstance(msg, dict):
                    await connection.send("error", {"message": "Invalid JSON"})
                    continue

                connection.last_activity = time.monotonic()
                try:
                    await _handle_client_message(coordinator, connection, msg)
                except Exception as e:
                    logger.error(f"[WS] Error handling {msg.get('type')!r} from {connection_id}: {type(e).__name__}: {e}")

        except WebSocketDisconnect:
            logger.info(f"[WS] Client {connection_id} disconnected")
        except Exception as e:
            logger.error(f"[WS] Error on connection {connection_id}: {type(e).__name__}: {e}")
        finally:
            connection.websocket = None
            registry.unregister(connection_id)

    return router


async def _handle_client_message(
    coordinator: "ChatCoordinator",
    connection: Connection,
    msg: dict,
) -> None:
    """Dispatch a client WebSocket message to the appropriate handler."""
    msg_type = msg.get("type", "")

    if msg_type == "send-message":
        # the provider turn runs as a coordinator task, not inline
        coordinator.spawn(coordinator.handle_send_message(connection.connection_id, msg))

    elif msg_type == "identify":
        await coordinator.handle_identify(connection.connection_id, msg)

    elif msg_type == "subscribe":
        await coordinator.handle_subscribe(connection.connection_id, msg)

    elif msg_type == "typing":
        await coordinator.handle_typing(connection.connection_id, msg)

    elif msg_type == "heartbeat":
        await connection.send("heartbeat-ack", {})

    else:
        logger.warning(f"[WS] Unknown message type: {msg_type}")
