"""
Native Anthropic LLM client implementation.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import anthropic
from anthropic import AsyncAnthropic

from chat_relay.errors import (
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    QuotaExceededError,
    RateLimitedError,
    UnknownProviderError,
)
from chat_relay.llm_base_client import LlmClient
from chat_relay.llm_base_models import ChatMessage, Role

logger = logging.getLogger(__name__)

# Anthropic requires max_tokens on every request
DEFAULT_MAX_TOKENS = 1024


def _convert_messages(
    messages: Sequence[ChatMessage],
) -> tuple[Optional[str], List[Dict[str, Any]]]:
    """
    Convert internal messages into the format expected by Anthropic.

    System messages are lifted into the separate ``system`` parameter; if
    several are present they are joined in order.

    Returns:
        Tuple of (system_prompt, converted_messages)
    """
    system_parts = []
    converted: List[Dict[str, Any]] = []
    for m in messages:
        if m.role == Role.SYSTEM:
            system_parts.append(m.content)
        else:
            converted.append({"role": m.role.value, "content": m.content})
    system_prompt = "\n\n".join(system_parts) if system_parts else None
    return system_prompt, converted


def classify_anthropic_error(provider: str, error: Exception) -> ProviderError:
    """Map an anthropic SDK exception onto the relay's provider error taxonomy."""
    if isinstance(error, anthropic.APITimeoutError):
        return ProviderTimeoutError(provider, str(error))
    if isinstance(error, anthropic.APIConnectionError):
        return ProviderUnavailableError(provider, str(error))
    if isinstance(error, anthropic.APIStatusError):
        status = error.status_code
        details = {"status_code": status}
        if status == 402:
            return QuotaExceededError(provider, error.message, details)
        if status == 429:
            return RateLimitedError(provider, error.message, details)
        if status >= 500:
            # includes 529 "overloaded"
            return ProviderUnavailableError(provider, error.message, details)
        return UnknownProviderError(provider, error.message, details)
    return UnknownProviderError(provider, f"{type(error).__name__}: {error}")


class AnthropicClient(LlmClient):
    """Client for Anthropic's Messages API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: Optional[float] = None,
        client: Optional[AsyncAnthropic] = None,
    ) -> None:
        super().__init__(model, "anthropic")
        self._aclient = client or AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        max_tokens: Optional[int] = None,
        temperature: float = 0.7,
    ) -> str:
        system_prompt, converted = _convert_messages(messages)
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": converted,
            "max_tokens": max_tokens or DEFAULT_MAX_TOKENS,
            "temperature": temperature,
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        try:
            response = await self._aclient.messages.create(**kwargs)
        except anthropic.AnthropicError as e:
            raise classify_anthropic_error(self.provider_name, e) from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        logger.debug(
            f"[ANTHROPIC] usage: in={response.usage.input_tokens} out={response.usage.output_tokens}"
        )
        return text

    async def aclose(self) -> None:
        await self._aclient.close()
