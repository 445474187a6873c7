"""Generic provider for any OpenAI-compatible API endpoint.

Selected with ``CHAT_PROVIDER=custom``; the endpoint is configured through
``CHAT_BASE_URL``, ``CHAT_API_KEY`` and ``CHAT_MODEL``. It can also be added
at runtime::

    manager.register_openai_compatible(
        name="local",
        label="Local vLLM",
        api_key="unused",
        base_url="http://localhost:8000/v1",
        models=[LLMInfo(provider="local", name="qwen", label="Qwen", model="qwen2.5:7b")],
    )
"""
from typing import List, Optional

from chat_relay.providers.llm_provider_base import BaseProvider
from chat_relay.llm_base_client import LlmClient
from chat_relay.providers.llm_provider_models import LLMInfo
from chat_relay.providers.openai_compat_client import OpenAICompatibleClient


class GenericOpenAIProvider(BaseProvider):
    """Provider for any OpenAI-compatible API endpoint.

    Unlike the built-in providers which read API keys from environment
    variables, this provider accepts all configuration explicitly.
    """

    def __init__(
        self,
        name: str,
        label: str,
        api_key: str,
        base_url: str,
        models: List[LLMInfo],
    ):
        super().__init__(name, label)
        self._api_key = api_key
        self._base_url = base_url
        self._models = models

    @property
    def is_available(self) -> bool:
        return bool(self._api_key) and bool(self._base_url)

    def get_models(self) -> List[LLMInfo]:
        return self._models

    def create_client(
        self,
        model: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        **kwargs,
    ) -> LlmClient:
        return OpenAICompatibleClient(
            api_key=self._api_key,
            model=model,
            base_url=base_url or self._base_url,
            timeout=timeout,
            provider_name=self.name,
        )
