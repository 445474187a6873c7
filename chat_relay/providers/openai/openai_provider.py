"""OpenAI provider implementation."""
import os
from typing import List, Optional

from chat_relay.providers import BaseProvider, register_provider
from chat_relay.llm_base_client import LlmClient
from chat_relay.providers.openai_compat_client import OpenAICompatibleClient
from .openai_models import DEFAULT_MODEL, OPENAI_MODELS
from ..llm_provider_models import LLMInfo


@register_provider("openai")
class OpenAIProvider(BaseProvider):
    """OpenAI provider implementation."""

    def __init__(self):
        """Initialize OpenAI provider."""
        super().__init__("openai", "OpenAI")
        self._api_key = os.environ.get('OPENAI_API_KEY')

    @property
    def is_available(self) -> bool:
        """Check if provider is available (has valid API key)."""
        return self._api_key is not None

    def get_models(self) -> List[LLMInfo]:
        """Get list of available OpenAI models."""
        return OPENAI_MODELS

    def default_model(self) -> LLMInfo:
        return DEFAULT_MODEL

    def create_client(
        self,
        model: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        **kwargs
    ) -> LlmClient:
        """Create an OpenAI chat model client.

        Raises:
            ValueError: If OPENAI_API_KEY environment variable is not set
        """
        if not self.is_available:
            raise ValueError("OPENAI_API_KEY environment variable is not set")

        return OpenAICompatibleClient(
            api_key=self._api_key,
            model=model,
            base_url=base_url,
            timeout=timeout,
            provider_name=self.name,
        )
