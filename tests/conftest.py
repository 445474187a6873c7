"""Test configuration and fixtures."""
import asyncio
from typing import Any, Dict, List, Optional, Sequence

import pytest
from starlette.websockets import WebSocketState

from chat_relay.api.session_registry import SessionRegistry
from chat_relay.chat_coordinator import ChatCoordinator
from chat_relay.config import RelayConfig
from chat_relay.conversation_store import ConversationStore
from chat_relay.llm_base_client import LlmClient
from chat_relay.llm_base_models import ChatMessage


class FakeLlmClient(LlmClient):
    """Scripted completion client.

    Each entry of ``replies`` is returned (str), raised (exception) or
    called with the messages (callable). Once exhausted, replies are "ok".
    Set ``gate`` to an asyncio.Event to hold every call until it is set.
    """

    def __init__(self, replies: Optional[List[Any]] = None, *, delay: float = 0.0):
        super().__init__(model="fake-model", provider_name="fake")
        self.replies = list(replies or [])
        self.delay = delay
        self.gate: Optional[asyncio.Event] = None
        self.calls: List[List[ChatMessage]] = []
        self.call_kwargs: List[Dict[str, Any]] = []
        self.closed = False

    def estimate_tokens(self, text: str, role: Optional[str] = None) -> int:
        # one token per word, plus one for the role prefix
        return len(text.split()) + (1 if role else 0)

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        max_tokens: Optional[int] = None,
        temperature: float = 0.7,
    ) -> str:
        self.calls.append(list(messages))
        self.call_kwargs.append({"max_tokens": max_tokens, "temperature": temperature})
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        reply = self.replies.pop(0) if self.replies else "ok"
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            return reply(messages)
        return reply

    async def aclose(self) -> None:
        self.closed = True


class FakeWebSocket:
    """Records frames sent through ``send_json``."""

    def __init__(self, fail: bool = False):
        self.client_state = WebSocketState.CONNECTED
        self.sent: List[Dict[str, Any]] = []
        self.fail = fail

    async def send_json(self, data: Dict[str, Any]) -> None:
        if self.fail:
            raise RuntimeError("socket broken")
        self.sent.append(data)

    def of_type(self, event: str) -> List[Dict[str, Any]]:
        return [m for m in self.sent if m["type"] == event]

    def disconnect(self) -> None:
        self.client_state = WebSocketState.DISCONNECTED


@pytest.fixture
def config():
    return RelayConfig()


@pytest.fixture
def store():
    return ConversationStore()


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def fake_client():
    return FakeLlmClient()


@pytest.fixture
def coordinator(store, registry, fake_client, config):
    return ChatCoordinator(store, registry, fake_client, config)


@pytest.fixture
def connect(registry):
    """Register a connection backed by a FakeWebSocket and return the socket."""
    def _connect(connection_id: str, user_id: Optional[str] = None, username: Optional[str] = None) -> FakeWebSocket:
        ws = FakeWebSocket()
        registry.register(connection_id, ws)
        if user_id is not None:
            registry.identify(connection_id, user_id, username)
        return ws
    return _connect
