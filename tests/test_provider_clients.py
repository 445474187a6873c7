"""Tests for the provider clients and their error classification."""
from types import SimpleNamespace

import anthropic
import httpx
import openai
import pytest

from chat_relay.errors import (
    ProviderTimeoutError,
    ProviderUnavailableError,
    QuotaExceededError,
    RateLimitedError,
    UnknownProviderError,
)
from chat_relay.llm_base_models import ChatMessage
from chat_relay.providers.anthropic.anthropic_client import AnthropicClient, classify_anthropic_error
from chat_relay.providers.openai_compat_client import OpenAICompatibleClient, classify_openai_error

REQUEST = httpx.Request("POST", "https://api.example.com/v1/chat/completions")
MESSAGES = [ChatMessage.system("Be brief."), ChatMessage.user("hi")]


def openai_status_error(status: int, code=None) -> openai.APIStatusError:
    body = {"message": "error", "code": code} if code else None
    return openai.APIStatusError("error", response=httpx.Response(status, request=REQUEST), body=body)


def anthropic_status_error(status: int) -> anthropic.APIStatusError:
    return anthropic.APIStatusError("error", response=httpx.Response(status, request=REQUEST), body=None)


class FakeCompletions:
    def __init__(self, result):
        self.result = result
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if isinstance(self.result, BaseException):
            raise self.result
        return self.result


def fake_openai(result):
    completions = FakeCompletions(result)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def completion(content):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=10, completion_tokens=3),
    )


# ── OpenAI-compatible ──────────────────────────────────────────────


@pytest.mark.parametrize("error,expected", [
    (openai_status_error(429, "insufficient_quota"), QuotaExceededError),
    (openai_status_error(402), QuotaExceededError),
    (openai_status_error(429, "rate_limit_exceeded"), RateLimitedError),
    (openai_status_error(429), RateLimitedError),
    (openai_status_error(503), ProviderUnavailableError),
    (openai_status_error(400), UnknownProviderError),
    (openai.APIConnectionError(request=REQUEST), ProviderUnavailableError),
    (openai.APITimeoutError(request=REQUEST), ProviderTimeoutError),
    (ValueError("odd"), UnknownProviderError),
])
def test_classify_openai_error(error, expected):
    classified = classify_openai_error("deepseek", error)
    assert type(classified) is expected
    assert classified.provider == "deepseek"


def test_quota_takes_precedence_over_rate_limit():
    """A 429 carrying insufficient_quota is a quota problem, not throttling."""
    classified = classify_openai_error("openai", openai_status_error(429, "insufficient_quota"))
    assert classified.status_code == 429
    assert classified.public_message == "API quota exceeded. Please try again later."


@pytest.mark.asyncio
async def test_openai_complete():
    aclient, completions = fake_openai(completion("Hello!"))
    client = OpenAICompatibleClient(api_key="k", model="deepseek-chat", provider_name="deepseek", client=aclient)

    text = await client.complete(MESSAGES, max_tokens=300, temperature=0.7)

    assert text == "Hello!"
    assert completions.kwargs == {
        "model": "deepseek-chat",
        "messages": [{"role": "system", "content": "Be brief."}, {"role": "user", "content": "hi"}],
        "temperature": 0.7,
        "max_tokens": 300,
    }


@pytest.mark.asyncio
async def test_openai_complete_omits_unset_max_tokens():
    aclient, completions = fake_openai(completion(None))
    client = OpenAICompatibleClient(api_key="k", model="gpt-4o-mini", client=aclient)

    assert await client.complete(MESSAGES) == ""
    assert "max_tokens" not in completions.kwargs


@pytest.mark.asyncio
async def test_openai_complete_classifies_errors():
    aclient, _ = fake_openai(openai_status_error(429, "rate_limit_exceeded"))
    client = OpenAICompatibleClient(api_key="k", model="deepseek-chat", provider_name="deepseek", client=aclient)

    with pytest.raises(RateLimitedError) as exc_info:
        await client.complete(MESSAGES)
    assert isinstance(exc_info.value.__cause__, openai.APIStatusError)


@pytest.mark.asyncio
async def test_openai_complete_without_choices():
    aclient, _ = fake_openai(SimpleNamespace(choices=[], usage=None))
    client = OpenAICompatibleClient(api_key="k", model="deepseek-chat", client=aclient)

    with pytest.raises(UnknownProviderError):
        await client.complete(MESSAGES)


# ── Anthropic ──────────────────────────────────────────────────────


@pytest.mark.parametrize("error,expected", [
    (anthropic_status_error(402), QuotaExceededError),
    (anthropic_status_error(429), RateLimitedError),
    (anthropic_status_error(529), ProviderUnavailableError),
    (anthropic_status_error(400), UnknownProviderError),
    (anthropic.APIConnectionError(request=REQUEST), ProviderUnavailableError),
    (anthropic.APITimeoutError(request=REQUEST), ProviderTimeoutError),
])
def test_classify_anthropic_error(error, expected):
    assert type(classify_anthropic_error("anthropic", error)) is expected


@pytest.mark.asyncio
async def test_anthropic_complete_lifts_system_prompt():
    calls = {}

    async def create(**kwargs):
        calls.update(kwargs)
        return SimpleNamespace(
            content=[SimpleNamespace(type="text", text="Hi "), SimpleNamespace(type="text", text="there")],
            usage=SimpleNamespace(input_tokens=5, output_tokens=2),
        )

    aclient = SimpleNamespace(messages=SimpleNamespace(create=create))
    client = AnthropicClient(api_key="k", model="claude-haiku-4-5-20251001", client=aclient)

    text = await client.complete(MESSAGES, max_tokens=None)

    assert text == "Hi there"
    assert calls["system"] == "Be brief."
    assert calls["messages"] == [{"role": "user", "content": "hi"}]
    assert calls["max_tokens"] == 1024
