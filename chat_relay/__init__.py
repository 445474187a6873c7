"""chat-relay — conversation sessions and real-time broadcast for LLM chat."""

from chat_relay.llm_base_models import ChatMessage, ConversationKey, Role
from chat_relay.llm_provider_manager import LLMManager
from chat_relay.providers.llm_provider_models import LLMInfo, ModelSize
from chat_relay.config import BroadcastMode, ChannelPolicy, RelayConfig
from chat_relay.conversation_store import ConversationStore
from chat_relay.api.session_registry import SessionRegistry
from chat_relay.chat_coordinator import ChatCoordinator, ChatReply

__all__ = [
    "ChatMessage",
    "ConversationKey",
    "Role",
    "LLMManager",
    "LLMInfo",
    "ModelSize",
    "BroadcastMode",
    "ChannelPolicy",
    "RelayConfig",
    "ConversationStore",
    "SessionRegistry",
    "ChatCoordinator",
    "ChatReply",
]
