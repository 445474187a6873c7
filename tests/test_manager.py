"""Tests for provider selection."""
import pytest

from chat_relay.config import RelayConfig
from chat_relay.llm_provider_manager import LLMManager
from chat_relay.providers import LLMInfo, get_provider
from chat_relay.providers.anthropic.anthropic_client import AnthropicClient
from chat_relay.providers.deepseek.deepseek_models import DEEPSEEK_API_BASE
from chat_relay.providers.openai_compat_client import OpenAICompatibleClient

PROVIDER_KEYS = ["DEEPSEEK_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in PROVIDER_KEYS:
        monkeypatch.delenv(name, raising=False)


def test_only_providers_with_keys_are_available(monkeypatch):
    monkeypatch.setenv("DEEPSEEK_API_KEY", "sk-test")

    manager = LLMManager()

    assert set(manager.providers) == {"deepseek"}
    assert "deepseek-chat" in {info.model for info in manager.providers["deepseek"].get_models()}


def test_unknown_provider_name():
    with pytest.raises(ValueError):
        get_provider("nonexistent")


def test_create_deepseek_client_with_default_model(monkeypatch):
    monkeypatch.setenv("DEEPSEEK_API_KEY", "sk-test")

    client = LLMManager().create_client(RelayConfig(provider="deepseek", provider_timeout=30))

    assert isinstance(client, OpenAICompatibleClient)
    assert client.model == "deepseek-chat"
    assert client.provider_name == "deepseek"
    assert str(client._aclient.base_url).rstrip("/") == DEEPSEEK_API_BASE


def test_create_client_resolves_model_name(monkeypatch):
    monkeypatch.setenv("DEEPSEEK_API_KEY", "sk-test")

    client = LLMManager().create_client(RelayConfig(provider="deepseek", model="deepseek_reasoner"))

    assert client.model == "deepseek-reasoner"


def test_anthropic_default_model(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")

    client = LLMManager().create_client(RelayConfig(provider="anthropic"))

    assert isinstance(client, AnthropicClient)
    assert "haiku" in client.model


def test_unavailable_provider_raises():
    with pytest.raises(ValueError, match="not available"):
        LLMManager().create_client(RelayConfig(provider="deepseek"))


def test_custom_provider():
    config = RelayConfig(provider="custom", base_url="http://localhost:8000/v1", api_key="x", model="qwen2.5:7b")

    client = LLMManager().create_client(config)

    assert isinstance(client, OpenAICompatibleClient)
    assert client.model == "qwen2.5:7b"
    assert client.provider_name == "custom"
    assert str(client._aclient.base_url).startswith("http://localhost:8000/v1")


def test_custom_provider_requires_endpoint():
    with pytest.raises(ValueError):
        LLMManager().create_client(RelayConfig(provider="custom", model="m"))


def test_register_openai_compatible():
    manager = LLMManager()
    manager.register_openai_compatible(
        name="local",
        label="Local",
        api_key="unused",
        base_url="http://localhost:11434/v1",
        models=[LLMInfo(provider="local", name="llama", label="Llama", model="llama3.1:8b")],
    )

    client = manager.create_client(RelayConfig(provider="local"))

    assert client.model == "llama3.1:8b"
