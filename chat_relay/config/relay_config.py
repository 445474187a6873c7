"""Runtime configuration for the chat relay."""
import os
from enum import Enum
from typing import Callable, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class BroadcastMode(str, Enum):
    """Who receives real-time chat messages."""
    SUBSCRIBERS = "subscribers"  # only connections following the conversation
    ALL = "all"  # every live connection


class ChannelPolicy(BaseModel):
    """Context and sampling policy for one inbound channel."""
    context_limit: int = Field(10, ge=1, description="Number of trailing history messages sent to the provider")
    system_prompt: str = Field("You are a helpful AI assistant.", description="System preamble prefixed to every context window")
    max_tokens: Optional[int] = Field(500, description="Maximum tokens the provider may generate")
    temperature: float = Field(0.7, description="Sampling temperature")
    max_context_tokens: Optional[int] = Field(
        None,
        ge=1,
        description="Optional prompt token budget. When set, the oldest window messages are dropped "
                    "until the estimated prompt fits. The system message and newest message are always kept.",
    )


def default_http_policy() -> ChannelPolicy:
    return ChannelPolicy(
        context_limit=10,
        system_prompt="You are a helpful AI assistant powered by DeepSeek.",
        max_tokens=500,
    )


def default_realtime_policy() -> ChannelPolicy:
    return ChannelPolicy(
        context_limit=8,
        system_prompt="You are a helpful AI assistant in a live chat.",
        max_tokens=300,
    )


class RelayConfig(BaseModel):
    """Configuration for the relay server and its core services."""
    provider: str = Field("deepseek", description="Provider backend (deepseek, openai, anthropic, custom)")
    model: Optional[str] = Field(None, description="Model name. None = provider default")
    base_url: Optional[str] = Field(None, description="Base URL override; required for the custom provider")
    api_key: Optional[str] = Field(None, description="API key for the custom provider")
    provider_timeout: float = Field(60.0, gt=0, description="Seconds to wait for one provider completion")

    http: ChannelPolicy = Field(default_factory=default_http_policy)
    realtime: ChannelPolicy = Field(default_factory=default_realtime_policy)

    max_conversations: int = Field(1000, ge=1, description="Histories kept before LRU eviction")
    max_messages_per_conversation: int = Field(200, ge=2, description="Messages kept per history; oldest dropped first")
    conversation_ttl: float = Field(3600.0, gt=0, description="Seconds of inactivity before a history expires")
    cleanup_interval: float = Field(60.0, gt=0, description="Seconds between expiry sweeps")

    max_connections: int = Field(1000, ge=1, description="Concurrent real-time connections")
    broadcast_mode: BroadcastMode = BroadcastMode.SUBSCRIBERS

    rate_limit_requests: int = Field(100, ge=1, description="Requests per client per window on /api")
    rate_limit_window_minutes: int = Field(15, ge=1, le=60, description="Length of the rate limit window")

    frontend_url: str = "http://localhost:3000"
    static_dir: Optional[str] = Field(None, description="Built frontend to serve at /, if present")
    port: int = 5000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "RelayConfig":
        """Build a config from environment variables, keeping defaults for unset ones."""
        http = _policy_from_env(default_http_policy(), "CHAT_HTTP")
        realtime = _policy_from_env(default_realtime_policy(), "CHAT_REALTIME")

        return cls(
            provider=os.environ.get("CHAT_PROVIDER", "deepseek"),
            model=os.environ.get("CHAT_MODEL") or None,
            base_url=os.environ.get("CHAT_BASE_URL") or None,
            api_key=os.environ.get("CHAT_API_KEY") or None,
            provider_timeout=_env("CHAT_PROVIDER_TIMEOUT", float, 60.0),
            http=http,
            realtime=realtime,
            max_conversations=_env("CHAT_MAX_CONVERSATIONS", int, 1000),
            max_messages_per_conversation=_env("CHAT_MAX_MESSAGES", int, 200),
            conversation_ttl=_env("CHAT_CONVERSATION_TTL", float, 3600.0),
            max_connections=_env("CHAT_MAX_CONNECTIONS", int, 1000),
            broadcast_mode=BroadcastMode(os.environ.get("CHAT_BROADCAST_MODE", BroadcastMode.SUBSCRIBERS.value)),
            rate_limit_requests=_env("RATE_LIMIT_REQUESTS", int, 100),
            rate_limit_window_minutes=_env("RATE_LIMIT_WINDOW_MINUTES", int, 15),
            frontend_url=os.environ.get("FRONTEND_URL", "http://localhost:3000"),
            static_dir=os.environ.get("STATIC_DIR") or None,
            port=_env("PORT", int, 5000),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )


def _policy_from_env(policy: ChannelPolicy, prefix: str) -> ChannelPolicy:
    """Overlay ``<prefix>_CONTEXT_LIMIT`` and ``<prefix>_MAX_CONTEXT_TOKENS`` onto a policy.

    The result is validated again, so out-of-range values raise ``ValueError``.
    """
    data = policy.model_dump()
    data["context_limit"] = _env(f"{prefix}_CONTEXT_LIMIT", int, policy.context_limit)
    data["max_context_tokens"] = _env(f"{prefix}_MAX_CONTEXT_TOKENS", int, policy.max_context_tokens)
    return ChannelPolicy.model_validate(data)


def _env(name: str, cast: Callable[[str], T], default: Optional[T]) -> Optional[T]:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from e
