"""Base provider interface for LLM providers."""
from abc import ABC, abstractmethod
from typing import List, Optional

from .llm_provider_models import LLMInfo
from ..llm_base_client import LlmClient


class BaseProvider(ABC):
    """Base class for LLM providers."""

    def __init__(self, name: str, label: str):
        """Initialize provider.

        :param name: The provider name, "deepseek", "openai", etc.
        :param label: The provider label, "DeepSeek", "OpenAI", etc.
        """
        self.name = name
        self.label = label

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Check if provider is available (has valid API key)."""
        pass

    @abstractmethod
    def get_models(self) -> List[LLMInfo]:
        """Get list of available models for this provider."""
        pass

    @abstractmethod
    def create_client(
        self,
        model: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        **kwargs
    ) -> LlmClient:
        """Create an LLM client.

        Args:
            model: Model name to use
            base_url: Optional base URL for the API
            timeout: Optional per-request timeout in seconds for the SDK
            **kwargs: Additional provider-specific arguments

        Returns:
            Configured LlmClient instance
        """
        pass

    def default_model(self) -> Optional[LLMInfo]:
        """Model used when none is configured. Defaults to the first listed model."""
        models = self.get_models()
        return models[0] if models else None

    def find_model(self, model: str) -> Optional[LLMInfo]:
        """Look up a model by its high-level name or API model name."""
        return next(
            (info for info in self.get_models() if info.name == model or info.model == model),
            None,
        )
