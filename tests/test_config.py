"""Tests for environment configuration."""
import pytest

from chat_relay.config import BroadcastMode, RelayConfig

ENV_NAMES = [
    "CHAT_PROVIDER", "CHAT_MODEL", "CHAT_BASE_URL", "CHAT_API_KEY", "CHAT_PROVIDER_TIMEOUT",
    "CHAT_HTTP_CONTEXT_LIMIT", "CHAT_REALTIME_CONTEXT_LIMIT", "CHAT_HTTP_MAX_CONTEXT_TOKENS",
    "CHAT_REALTIME_MAX_CONTEXT_TOKENS", "CHAT_MAX_CONVERSATIONS", "CHAT_MAX_MESSAGES",
    "CHAT_CONVERSATION_TTL", "CHAT_MAX_CONNECTIONS", "CHAT_BROADCAST_MODE", "RATE_LIMIT_REQUESTS",
    "RATE_LIMIT_WINDOW_MINUTES", "FRONTEND_URL", "STATIC_DIR", "PORT", "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = RelayConfig.from_env()

    assert config.provider == "deepseek"
    assert config.model is None
    assert config.http.context_limit == 10
    assert config.http.max_tokens == 500
    assert config.realtime.context_limit == 8
    assert config.realtime.max_tokens == 300
    assert config.realtime.system_prompt == "You are a helpful AI assistant in a live chat."
    assert config.broadcast_mode == BroadcastMode.SUBSCRIBERS
    assert config.rate_limit_requests == 100
    assert config.rate_limit_window_minutes == 15
    assert config.frontend_url == "http://localhost:3000"
    assert config.port == 5000


def test_overrides(monkeypatch):
    monkeypatch.setenv("CHAT_PROVIDER", "openai")
    monkeypatch.setenv("CHAT_HTTP_CONTEXT_LIMIT", "4")
    monkeypatch.setenv("CHAT_REALTIME_MAX_CONTEXT_TOKENS", "2000")
    monkeypatch.setenv("CHAT_BROADCAST_MODE", "all")
    monkeypatch.setenv("CHAT_PROVIDER_TIMEOUT", "12.5")
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = RelayConfig.from_env()

    assert config.provider == "openai"
    assert config.http.context_limit == 4
    assert config.realtime.max_context_tokens == 2000
    assert config.broadcast_mode == BroadcastMode.ALL
    assert config.provider_timeout == 12.5
    assert config.port == 9000
    assert config.log_level == "DEBUG"


def test_blank_values_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("PORT", "")
    assert RelayConfig.from_env().port == 5000


def test_invalid_number(monkeypatch):
    monkeypatch.setenv("CHAT_MAX_MESSAGES", "lots")
    with pytest.raises(ValueError, match="CHAT_MAX_MESSAGES"):
        RelayConfig.from_env()


def test_invalid_broadcast_mode(monkeypatch):
    monkeypatch.setenv("CHAT_BROADCAST_MODE", "everyone")
    with pytest.raises(ValueError):
        RelayConfig.from_env()


@pytest.mark.parametrize("name,value", [
    ("CHAT_HTTP_CONTEXT_LIMIT", "-1"),
    ("CHAT_REALTIME_CONTEXT_LIMIT", "0"),
    ("CHAT_HTTP_MAX_CONTEXT_TOKENS", "0"),
])
def test_out_of_range_policy_value(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError):
        RelayConfig.from_env()


def test_policy_overrides_keep_other_defaults(monkeypatch):
    monkeypatch.setenv("CHAT_REALTIME_CONTEXT_LIMIT", "3")

    config = RelayConfig.from_env()

    assert config.realtime.context_limit == 3
    assert config.realtime.max_tokens == 300
    assert config.realtime.system_prompt == "You are a helpful AI assistant in a live chat."
    assert config.http.context_limit == 10
