"""HTTP and WebSocket API for chat clients.

Provides SessionRegistry and the router builders mounted by the standalone app.
"""

from .session_registry import Connection, SessionRegistry
from .chat_http_api import build_http_router
from .chat_ws_api import build_ws_router

__all__ = ["Connection", "SessionRegistry", "build_http_router", "build_ws_router"]
