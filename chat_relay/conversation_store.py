"""In-memory conversation history store with per-key locking and bounds."""
import asyncio
import logging
import time
from collections import OrderedDict
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Dict, List

from .llm_base_models import ChatMessage, ConversationKey

logger = logging.getLogger(__name__)


@dataclass
class _History:
    messages: List[ChatMessage] = field(default_factory=list)
    last_activity: float = 0.0


@dataclass
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0  # tasks holding or waiting for the lock


class ConversationStore:
    """Maps ConversationKey → ordered message history.

    All operations are synchronous and therefore atomic on the event loop.
    ``lock(key)`` serializes multi-step sequences on one key (append, await
    provider, append) across tasks.

    Memory is bounded three ways: at most ``max_conversations`` histories
    (least recently appended, unlocked history evicted first), at most
    ``max_messages`` per history (oldest dropped), and ``cleanup_expired``
    for idle histories.
    """

    def __init__(
        self,
        *,
        max_conversations: int = 1000,
        max_messages: int = 200,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_conversations = max_conversations
        self.max_messages = max_messages
        self._clock = clock
        self._histories: "OrderedDict[ConversationKey, _History]" = OrderedDict()
        self._locks: Dict[ConversationKey, _KeyLock] = {}

    # ── History operations ─────────────────────────────────────

    def append(self, key: ConversationKey, message: ChatMessage) -> None:
        """Append a message, creating the history if absent."""
        history = self._histories.get(key)
        if history is None:
            self._make_room()
            history = _History()
            self._histories[key] = history
        else:
            self._histories.move_to_end(key)

        history.messages.append(message)
        history.last_activity = self._clock()

        overflow = len(history.messages) - self.max_messages
        if overflow > 0:
            del history.messages[:overflow]
            logger.debug(f"[STORE] Trimmed {overflow} oldest messages from {key}")

    def get(self, key: ConversationKey) -> List[ChatMessage]:
        """Full history of ``key`` in append order; empty if unknown."""
        history = self._histories.get(key)
        return list(history.messages) if history else []

    def context_window(self, key: ConversationKey, limit: int, system_message: ChatMessage) -> List[ChatMessage]:
        """The last ``limit`` messages of ``key`` prefixed by ``system_message``."""
        if limit < 0:
            raise ValueError("limit must not be negative")
        history = self._histories.get(key)
        tail = history.messages[-limit:] if history and limit > 0 else []
        return [system_message, *tail]

    def clear(self, key: ConversationKey) -> None:
        """Drop the history of ``key``. Clearing an unknown key is a no-op."""
        if self._histories.pop(key, None) is not None:
            logger.info(f"[STORE] Cleared conversation {key}")

    # ── Locking ────────────────────────────────────────────────

    @asynccontextmanager
    async def lock(self, key: ConversationKey) -> AsyncIterator[None]:
        """Exclusive access to ``key`` for the duration of the block.

        Lock objects exist only while some task holds or awaits them.
        """
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _KeyLock()
        entry.holders += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if entry.holders == 0:
                self._locks.pop(key, None)

    def is_locked(self, key: ConversationKey) -> bool:
        return key in self._locks

    # ── Bounds ─────────────────────────────────────────────────

    def _make_room(self) -> None:
        while len(self._histories) >= self.max_conversations:
            victim = next((k for k in self._histories if not self.is_locked(k)), None)
            if victim is None:
                # every history is mid-turn; allow a temporary overshoot
                logger.warning(f"[STORE] All {len(self._histories)} conversations busy, cannot evict")
                return
            del self._histories[victim]
            logger.info(f"[STORE] Evicted least recently used conversation {victim}")

    def cleanup_expired(self, ttl: float) -> int:
        """Remove histories idle for more than ttl seconds. Returns count removed."""
        now = self._clock()
        expired = [
            key for key, history in self._histories.items()
            if now - history.last_activity > ttl and not self.is_locked(key)
        ]
        for key in expired:
            del self._histories[key]
        if expired:
            logger.info(f"[STORE] Cleaned up {len(expired)} expired conversations")
        return len(expired)

    @property
    def conversation_count(self) -> int:
        return len(self._histories)

    @property
    def message_count(self) -> int:
        return sum(len(h.messages) for h in self._histories.values())
