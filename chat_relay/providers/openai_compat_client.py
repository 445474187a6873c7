"""
OpenAI-compatible Chat Completions API client.

Used by every provider that speaks the Chat Completions protocol
(DeepSeek, OpenAI, custom endpoints).
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import openai
from openai import AsyncOpenAI

from chat_relay.errors import (
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    QuotaExceededError,
    RateLimitedError,
    UnknownProviderError,
)
from chat_relay.llm_base_client import LlmClient
from chat_relay.llm_base_models import ChatMessage

logger = logging.getLogger(__name__)

QUOTA_ERROR_CODES = {"insufficient_quota", "insufficient_balance"}
RATE_LIMIT_ERROR_CODES = {"rate_limit_exceeded"}


def _convert_messages(messages: Sequence[ChatMessage]) -> List[Dict[str, Any]]:
    """Convert internal messages to OpenAI Chat Completions format."""
    return [m.to_provider_dict() for m in messages]


def classify_openai_error(provider: str, error: Exception) -> ProviderError:
    """Map an openai SDK exception onto the relay's provider error taxonomy."""
    if isinstance(error, openai.APITimeoutError):
        return ProviderTimeoutError(provider, str(error))
    if isinstance(error, openai.APIConnectionError):
        return ProviderUnavailableError(provider, str(error))
    if isinstance(error, openai.APIStatusError):
        code = getattr(error, "code", None)
        status = error.status_code
        details = {"status_code": status, "code": code}
        if code in QUOTA_ERROR_CODES or status == 402:
            return QuotaExceededError(provider, error.message, details)
        if code in RATE_LIMIT_ERROR_CODES or status == 429:
            return RateLimitedError(provider, error.message, details)
        if status >= 500:
            return ProviderUnavailableError(provider, error.message, details)
        return UnknownProviderError(provider, error.message, details)
    return UnknownProviderError(provider, f"{type(error).__name__}: {error}")


class OpenAICompatibleClient(LlmClient):
    """Client for OpenAI-compatible APIs (DeepSeek, OpenAI, custom endpoints).

    Uses the standard Chat Completions API. Retries are disabled on the SDK so
    that throttling surfaces to the caller instead of being retried silently.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        provider_name: str = "openai",
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        super().__init__(model, provider_name)
        self._aclient = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )

    def _build_kwargs(
        self,
        messages: Sequence[ChatMessage],
        max_tokens: Optional[int],
        temperature: float,
    ) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": _convert_messages(messages),
            "temperature": temperature,
        }
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        return kwargs

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        max_tokens: Optional[int] = None,
        temperature: float = 0.7,
    ) -> str:
        kwargs = self._build_kwargs(messages, max_tokens, temperature)
        try:
            response = await self._aclient.chat.completions.create(**kwargs)
        except openai.OpenAIError as e:
            raise classify_openai_error(self.provider_name, e) from e

        if not response.choices:
            raise UnknownProviderError(self.provider_name, "Response contained no choices")
        content = response.choices[0].message.content or ""
        if response.usage:
            logger.debug(
                f"[{self.provider_name.upper()}] usage: "
                f"in={response.usage.prompt_tokens} out={response.usage.completion_tokens}"
            )
        return content

    async def aclose(self) -> None:
        await self._aclient.close()
