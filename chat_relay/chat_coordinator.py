"""Chat coordinator: runs conversation turns and fans out real-time events.

The coordinator owns no state of its own beyond its background tasks. Histories
live in the ConversationStore, connections in the SessionRegistry.

Every turn on a conversation runs under that conversation's store lock::

    lock(key) → append user → context window → provider → append assistant

so concurrent turns on one key never interleave, while turns on different
keys proceed in parallel.
"""
import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set

from pydantic import BaseModel

from .api.session_registry import Connection, SessionRegistry
from .config import BroadcastMode, ChannelPolicy, RelayConfig
from .conversation_store import ConversationStore
from .errors import ChatRelayError, InvalidInputError, ProviderTimeoutError, UnknownConnectionError
from .llm_base_client import LlmClient
from .llm_base_models import ChatMessage, ConversationKey, iso_timestamp

logger = logging.getLogger(__name__)

FAILED_TO_PROCESS = "Failed to process message"


class ChatReply(BaseModel):
    """Result of one point-to-point chat turn."""
    response: str
    conversation_id: str
    timestamp: datetime


class ChatCoordinator:
    """Drives chat turns against the provider and publishes their results."""

    def __init__(
        self,
        store: ConversationStore,
        registry: SessionRegistry,
        client: LlmClient,
        config: Optional[RelayConfig] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.registry = registry
        self.client = client
        self.config = config or RelayConfig()
        self._clock = clock
        self._started_at = clock()
        self._tasks: Set[asyncio.Task] = set()

    # ── Point-to-point ─────────────────────────────────────────

    async def chat(
        self,
        message: Optional[str],
        conversation_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> ChatReply:
        """Run one request/response turn.

        Raises:
            InvalidInputError: If the message is empty
            ProviderError: If the provider call fails or times out. The
                user turn stays in history; no assistant turn is added.
        """
        text = self._validate(message)
        key = ConversationKey.of(user_id, conversation_id)
        logger.info(f"[COORD] Chat request for {key}: {text[:50]}")

        reply = await self._complete_turn(key, text, self.config.http)

        logger.info(f"[COORD] Response generated for {key} ({len(reply.content)} chars)")
        return ChatReply(response=reply.content, conversation_id=key.conversation_id, timestamp=reply.timestamp)

    # ── Real-time ──────────────────────────────────────────────

    async def handle_send_message(self, connection_id: str, payload: Dict[str, Any]) -> None:
        """Echo a chat message to the broadcast targets, then publish the reply.

        Failures are reported to the originating connection only.
        """
        origin = self.registry.get_connection(connection_id)
        user_id = payload.get("userId") or (origin.user_id if origin else None)
        username = payload.get("username") or (origin.username if origin else None)
        try:
            text = self._validate(payload.get("message"))
            key = ConversationKey.of(user_id, payload.get("conversationId"))
        except InvalidInputError as e:
            await self._send_error(origin, e.public_message)
            return
        except ValueError as e:
            logger.warning(f"[COORD] Rejected message from {connection_id}: {e}")
            await self._send_error(origin, FAILED_TO_PROCESS)
            return

        self.registry.subscribe(connection_id, key)

        await self.publish(key, "new-message", {
            "message": text,
            "sender": "user",
            "userId": user_id,
            "username": username,
            "timestamp": iso_timestamp(datetime.now(timezone.utc)),
            "conversationId": key.conversation_id,
        })

        try:
            reply = await self._complete_turn(key, text, self.config.realtime)
        except ChatRelayError as e:
            logger.error(f"[COORD] Real-time turn failed for {key}: {e.message}")
            await self._send_error(self.registry.get_connection(connection_id), e.public_message)
            return
        except Exception as e:
            logger.error(f"[COORD] Real-time turn failed for {key}: {type(e).__name__}: {e}", exc_info=True)
            await self._send_error(self.registry.get_connection(connection_id), FAILED_TO_PROCESS)
            return

        await self.publish(key, "new-message", {
            "message": reply.content,
            "sender": "assistant",
            "timestamp": iso_timestamp(reply.timestamp),
            "conversationId": key.conversation_id,
        })

    async def handle_identify(self, connection_id: str, payload: Dict[str, Any]) -> None:
        """Bind a user identity to a connection. Unknown connections are ignored.

        When the payload names a ``conversationId`` the connection also starts
        following that conversation.
        """
        try:
            self.registry.identify(connection_id, payload.get("userId"), payload.get("username"))
        except UnknownConnectionError as e:
            logger.warning(f"[COORD] Identify ignored: {e.message}")
            return
        if payload.get("conversationId"):
            await self.handle_subscribe(connection_id, payload)

    async def handle_subscribe(self, connection_id: str, payload: Dict[str, Any]) -> bool:
        """Follow a conversation without posting to it.

        The user defaults to the connection's identified user. The connection
        gets a ``subscribed`` event once it receives the conversation's
        broadcasts.
        """
        origin = self.registry.get_connection(connection_id)
        if origin is None:
            logger.warning(f"[COORD] Subscribe ignored for unknown connection {connection_id}")
            return False
        key = ConversationKey.of(payload.get("userId") or origin.user_id, payload.get("conversationId"))
        self.registry.subscribe(connection_id, key)
        await origin.send("subscribed", {"userId": key.user_id, "conversationId": key.conversation_id})
        return True

    async def handle_typing(self, connection_id: str, payload: Dict[str, Any]) -> None:
        """Forward a typing indicator to every other relevant connection."""
        conversation_id = payload.get("conversationId")
        if conversation_id and self.config.broadcast_mode == BroadcastMode.SUBSCRIBERS:
            origin = self.registry.get_connection(connection_id)
            user_id = payload.get("userId") or (origin.user_id if origin else None)
            targets = self.registry.broadcast_targets(ConversationKey.of(user_id, conversation_id))
        else:
            targets = self.registry.broadcast_targets()

        event = {
            "userId": payload.get("userId"),
            "username": payload.get("username"),
            "isTyping": bool(payload.get("isTyping")),
        }
        await self._fan_out(
            (c for c in targets if c.connection_id != connection_id),
            "user-typing",
            event,
        )

    async def publish(self, key: ConversationKey, event: str, payload: Dict[str, Any]) -> int:
        """Send an event to the broadcast targets of ``key``. Returns deliveries."""
        if self.config.broadcast_mode == BroadcastMode.ALL:
            targets = self.registry.broadcast_targets()
        else:
            targets = self.registry.broadcast_targets(key)
        return await self._fan_out(targets, event, payload)

    # ── Background turns ───────────────────────────────────────

    def spawn(self, coro) -> asyncio.Task:
        """Run a handler coroutine as a task owned by the coordinator.

        The task outlives the connection that started it.
        """
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            e = task.exception()
            logger.error(f"[COORD] Background task failed: {type(e).__name__}: {e}")

    async def drain(self, timeout: float = 10.0) -> None:
        """Wait for pending background tasks, cancelling any left after ``timeout``."""
        if not self._tasks:
            return
        pending = set(self._tasks)
        logger.info(f"[COORD] Draining {len(pending)} pending turns")
        _, still_running = await asyncio.wait(pending, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning(f"[COORD] Cancelled {len(still_running)} turns still running after {timeout}s")
            await asyncio.gather(*still_running, return_exceptions=True)

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    # ── Conversation access ────────────────────────────────────

    def get_conversation(self, user_id: str, conversation_id: str) -> Dict[str, Any]:
        key = ConversationKey(user_id=user_id, conversation_id=conversation_id)
        messages = self.store.get(key)
        return {
            "conversationId": conversation_id,
            "messages": [
                {"role": m.role.value, "content": m.content, "timestamp": iso_timestamp(m.timestamp)}
                for m in messages
            ],
            "messageCount": len(messages),
        }

    async def clear_conversation(self, user_id: str, conversation_id: str) -> None:
        """Forget a history. Waits for a turn in flight on it to finish first."""
        key = ConversationKey(user_id=user_id, conversation_id=conversation_id)
        async with self.store.lock(key):
            self.store.clear(key)

    def health(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "timestamp": iso_timestamp(datetime.now(timezone.utc)),
            "activeConnections": self.registry.active_count,
            "uptime": self._clock() - self._started_at,
            "conversations": self.store.conversation_count,
        }

    # ── Internals ──────────────────────────────────────────────

    @staticmethod
    def _validate(message: Any) -> str:
        if not isinstance(message, str) or not message.strip():
            raise InvalidInputError()
        return message

    async def _complete_turn(self, key: ConversationKey, text: str, policy: ChannelPolicy) -> ChatMessage:
        async with self.store.lock(key):
            self.store.append(key, ChatMessage.user(text))
            window = self.store.context_window(key, policy.context_limit, ChatMessage.system(policy.system_prompt))
            if policy.max_context_tokens:
                window = self._fit_to_budget(window, policy.max_context_tokens)

            timeout = self.config.provider_timeout
            try:
                content = await asyncio.wait_for(
                    self.client.complete(window, max_tokens=policy.max_tokens, temperature=policy.temperature),
                    timeout=timeout,
                )
            except asyncio.TimeoutError:
                raise ProviderTimeoutError(self.client.provider_name, f"no response within {timeout}s") from None

            reply = ChatMessage.assistant(content)
            self.store.append(key, reply)
            return reply

    def _fit_to_budget(self, window: List[ChatMessage], max_tokens: int) -> List[ChatMessage]:
        """Drop the oldest non-system messages until the window fits ``max_tokens``.

        The system message and the newest message are always kept.
        """
        sizes = [self.client.estimate_message_tokens(m) for m in window]
        total = sum(sizes)
        start = 1
        while total > max_tokens and start < len(window) - 1:
            total -= sizes[start]
            start += 1
        if start > 1:
            logger.debug(f"[COORD] Dropped {start - 1} messages to fit {max_tokens} token budget")
        return [window[0], *window[start:]]

    async def _fan_out(self, targets, event: str, payload: Dict[str, Any]) -> int:
        targets = list(targets)
        if not targets:
            return 0
        results = await asyncio.gather(*(c.send(event, payload) for c in targets))
        return sum(1 for ok in results if ok)

    @staticmethod
    async def _send_error(connection: Optional[Connection], message: str) -> None:
        if connection is None:
            return
        await connection.send("error", {"message": message})
