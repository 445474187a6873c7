"""Base LLM client implementation."""
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from tiktoken import get_encoding

from .llm_base_models import ChatMessage


class LlmClient(ABC):
    """Base class for completion provider clients.

    Implementations turn a role-tagged message list into generated text, or
    raise one of the ``ProviderError`` subclasses from ``chat_relay.errors``.
    """

    provider_name: str = "provider"

    def __init__(self, model: str, provider_name: Optional[str] = None):
        """Initialize LLM client.

        Args:
            model: Model name to use
            provider_name: Name used in error messages and logs
        """
        self.model = model
        if provider_name:
            self.provider_name = provider_name

    def estimate_tokens(self, text: str, role: Optional[str] = None) -> int:
        """Estimate number of tokens in text using cl100k base tokenizer.

        Args:
            text: Text to estimate tokens for
            role: Optional role prefix (e.g. "system", "user", "assistant")

        Returns:
            Estimated token count
        """
        encoding = get_encoding("cl100k_base")
        if role:
            # Add role prefix to better estimate actual token usage
            text = f"{role}: {text}"
        return len(encoding.encode(text))

    def estimate_message_tokens(self, message: ChatMessage) -> int:
        """Estimate tokens of one message including its role prefix."""
        return self.estimate_tokens(message.content, message.role.value)

    @abstractmethod
    async def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        max_tokens: Optional[int] = None,
        temperature: float = 0.7,
    ) -> str:
        """Request a completion for the given conversation.

        Args:
            messages: Ordered messages, system message first
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature

        Returns:
            The generated assistant text

        Raises:
            ProviderError: Classified provider failure
        """
        pass

    async def aclose(self) -> None:
        """Release network resources held by the client."""
        return None
