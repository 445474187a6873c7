"""Models for chat handling."""
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

ANONYMOUS_USER = "anonymous"
DEFAULT_CONVERSATION = "default"


class Role(str, Enum):
    """Role in a chat conversation."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _id_or(value: Any, default: str) -> str:
    return str(value) if value else default


def iso_timestamp(ts: datetime) -> str:
    """ISO 8601 with a trailing Z for UTC, as sent to clients."""
    return ts.isoformat().replace("+00:00", "Z")


class ChatMessage(BaseModel):
    """A single message in a conversation. Frozen once created."""
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str
    timestamp: datetime = Field(default_factory=_utc_now)

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "ChatMessage":
        return cls(role=Role.ASSISTANT, content=content)

    def to_provider_dict(self) -> dict:
        """Role/content pair as sent to completion APIs."""
        return {"role": self.role.value, "content": self.content}


class ConversationKey(BaseModel):
    """Identifies one conversation history: (user, conversation).

    Compared as a pair, so ``("a_b", "c")`` and ``("a", "b_c")`` stay distinct.
    No normalization is applied; keys are case-sensitive.
    """
    model_config = ConfigDict(frozen=True)

    user_id: str
    conversation_id: str

    @classmethod
    def of(cls, user_id: Any, conversation_id: Any) -> "ConversationKey":
        """Build a key, falling back to defaults for missing identifiers.

        Clients may send numeric ids; they are keyed by their string form, so
        ``123`` and ``"123"`` name the same conversation.
        """
        return cls(
            user_id=_id_or(user_id, ANONYMOUS_USER),
            conversation_id=_id_or(conversation_id, DEFAULT_CONVERSATION),
        )

    def __str__(self) -> str:
        return f"{self.user_id}/{self.conversation_id}"
