"""LLM Manager for selecting the completion provider backend."""
import logging
from typing import Dict, List, Optional

from .config import RelayConfig
from .llm_base_client import LlmClient
from .providers import (
    LLMInfo,
    get_provider,
    BaseProvider,
)
from .providers.generic_openai_provider import GenericOpenAIProvider

logger = logging.getLogger(__name__)

CUSTOM_PROVIDER = "custom"


class LLMManager:
    """Manages the configured LLM providers and builds the relay's client."""

    # Built-in providers, configured from their API key environment variables
    SUPPORTED_PROVIDERS = {
        "deepseek",
        "openai",
        "anthropic",
    }

    def __init__(self):
        """Initialize LLM manager."""
        self.providers: Dict[str, BaseProvider] = {}
        for provider_name in self.SUPPORTED_PROVIDERS:
            try:
                provider_class = get_provider(provider_name)
                provider = provider_class()
                # Only add provider if it's available (has valid API key)
                if provider.is_available:
                    self.providers[provider_name] = provider
            except (ValueError, KeyError):
                # Skip providers that can't be initialized
                continue

    def register_provider(self, provider: BaseProvider) -> None:
        """Register a custom provider instance.

        :param provider: A BaseProvider instance to register
        """
        if provider.is_available:
            self.providers[provider.name] = provider

    def register_openai_compatible(
        self,
        name: str,
        label: str,
        api_key: str,
        base_url: str,
        models: List[LLMInfo],
    ) -> None:
        """Register a generic OpenAI-compatible provider.

        :param name: Provider name (used as key in registry)
        :param label: Human-readable label
        :param api_key: API key for the endpoint
        :param base_url: Base URL for the OpenAI-compatible API
        :param models: List of LLMInfo model definitions
        """
        provider = GenericOpenAIProvider(
            name=name,
            label=label,
            api_key=api_key,
            base_url=base_url,
            models=models,
        )
        self.register_provider(provider)

    def create_client(self, config: RelayConfig) -> LlmClient:
        """Create the completion client named by ``config.provider``.

        For the ``custom`` provider, ``config.base_url``, ``config.api_key``
        and ``config.model`` describe the OpenAI-compatible endpoint.

        :raises ValueError: If the provider is unknown, unavailable or has no model
        """
        if config.provider == CUSTOM_PROVIDER and CUSTOM_PROVIDER not in self.providers:
            if not config.base_url or not config.model:
                raise ValueError("The custom provider requires CHAT_BASE_URL and CHAT_MODEL")
            self.register_openai_compatible(
                name=CUSTOM_PROVIDER,
                label="Custom",
                api_key=config.api_key or "not-needed",
                base_url=config.base_url,
                models=[LLMInfo(provider=CUSTOM_PROVIDER, name=config.model, label=config.model, model=config.model)],
            )

        provider = self.providers.get(config.provider)
        if provider is None:
            raise ValueError(
                f"Provider {config.provider} is not available. "
                f"Available providers: {sorted(self.providers) or 'none'}"
            )

        model = self._resolve_model(provider, config.model)
        logger.info(f"[LLM] Using provider {provider.name} with model {model}")
        return provider.create_client(
            model=model,
            base_url=config.base_url if config.provider != CUSTOM_PROVIDER else None,
            timeout=config.provider_timeout,
        )

    @staticmethod
    def _resolve_model(provider: BaseProvider, model: Optional[str]) -> str:
        if model:
            info = provider.find_model(model)
            # unknown names are passed through to the provider as-is
            return info.model if info else model
        default = provider.default_model()
        if default is None:
            raise ValueError(f"Provider {provider.name} offers no models")
        return default.model
