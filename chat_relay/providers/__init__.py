"""Completion provider backends, looked up by name.

Each backend module registers its provider class with ``@register_provider``
when imported. The imports at the bottom load the built-in backends so that
``get_provider("deepseek")`` works as soon as this package is imported.
"""
from typing import Callable, Dict, Type

from .llm_provider_base import BaseProvider
from .llm_provider_models import LLMInfo

_registry: Dict[str, Type[BaseProvider]] = {}


def register_provider(name: str) -> Callable[[Type[BaseProvider]], Type[BaseProvider]]:
    """Class decorator adding a backend under ``name``. Later registrations win."""
    def decorator(provider_class: Type[BaseProvider]) -> Type[BaseProvider]:
        _registry[name] = provider_class
        return provider_class
    return decorator


def get_provider(name: str) -> Type[BaseProvider]:
    """Provider class registered as ``name``.

    :raises ValueError: If no backend is registered under that name
    """
    try:
        return _registry[name]
    except KeyError:
        raise ValueError(f"Provider {name} not registered (known: {', '.join(sorted(_registry))})") from None


from .deepseek.deepseek_provider import DeepSeekProvider  # noqa: E402
from .openai.openai_provider import OpenAIProvider  # noqa: E402
from .anthropic.anthropic_provider import AnthropicProvider  # noqa: E402
from .generic_openai_provider import GenericOpenAIProvider  # noqa: E402

__all__ = [
    "BaseProvider",
    "LLMInfo",
    "register_provider",
    "get_provider",
    "DeepSeekProvider",
    "OpenAIProvider",
    "AnthropicProvider",
    "GenericOpenAIProvider",
]
