"""DeepSeek provider implementation."""
import os
from typing import List, Optional

from chat_relay.providers import BaseProvider, register_provider
from chat_relay.llm_base_client import LlmClient
from chat_relay.providers.openai_compat_client import OpenAICompatibleClient
from .deepseek_models import DEEPSEEK_API_BASE, DEEPSEEK_MODELS, DEFAULT_MODEL
from ..llm_provider_models import LLMInfo


@register_provider("deepseek")
class DeepSeekProvider(BaseProvider):
    """DeepSeek provider, served through its OpenAI-compatible endpoint."""

    DEFAULT_BASE_URL = DEEPSEEK_API_BASE

    def __init__(self):
        """Initialize DeepSeek provider."""
        super().__init__("deepseek", "DeepSeek")
        self._api_key = os.environ.get('DEEPSEEK_API_KEY')

    @property
    def is_available(self) -> bool:
        """Check if provider is available (has valid API key)."""
        return self._api_key is not None

    def get_models(self) -> List[LLMInfo]:
        """Get list of available DeepSeek models."""
        return DEEPSEEK_MODELS

    def default_model(self) -> LLMInfo:
        return DEFAULT_MODEL

    def create_client(
        self,
        model: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        **kwargs
    ) -> LlmClient:
        """Create a DeepSeek chat model client.

        Raises:
            ValueError: If DEEPSEEK_API_KEY environment variable is not set
        """
        if not self.is_available:
            raise ValueError("DEEPSEEK_API_KEY environment variable is not set")

        return OpenAICompatibleClient(
            api_key=self._api_key,
            model=model,
            base_url=base_url or self.DEFAULT_BASE_URL,
            timeout=timeout,
            provider_name=self.name,
        )
