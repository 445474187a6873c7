"""Anthropic provider implementation."""
import os
from typing import List, Optional

from chat_relay.providers import BaseProvider, register_provider
from chat_relay.llm_base_client import LlmClient
from .anthropic_models import ANTHROPIC_MODELS, DEFAULT_MODEL, LLMInfo
from .anthropic_client import AnthropicClient


@register_provider("anthropic")
class AnthropicProvider(BaseProvider):
    """Anthropic provider implementation."""

    def __init__(self):
        """Initialize Anthropic provider."""
        super().__init__("anthropic", "Anthropic")
        self._api_key = os.environ.get('ANTHROPIC_API_KEY')

    @property
    def is_available(self) -> bool:
        """Check if provider is available (has valid API key)."""
        return self._api_key is not None

    def get_models(self) -> List[LLMInfo]:
        """Get list of available Anthropic models."""
        return ANTHROPIC_MODELS

    def default_model(self) -> LLMInfo:
        return DEFAULT_MODEL

    def create_client(
        self,
        model: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        **kwargs
    ) -> LlmClient:
        """Create an Anthropic client.

        Raises:
            ValueError: If ANTHROPIC_API_KEY environment variable is not set
        """
        if not self.is_available:
            raise ValueError("ANTHROPIC_API_KEY environment variable is not set")

        return AnthropicClient(api_key=self._api_key, model=model, timeout=timeout)
