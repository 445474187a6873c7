"""Anthropic models offered by the relay."""
from ..llm_provider_models import LLMInfo, ModelSize


ANTHROPIC_MODELS = [
    LLMInfo(
        provider="anthropic",
        name="claude_sonnet",
        label="Claude Sonnet 4.5",
        model="claude-sonnet-4-5-20250929",
        size=ModelSize.MEDIUM,
    ),
    LLMInfo(
        provider="anthropic",
        name="claude_haiku",
        label="Claude Haiku 4.5",
        model="claude-haiku-4-5-20251001",
        size=ModelSize.SMALL,
    ),
]

DEFAULT_MODEL = next(model for model in ANTHROPIC_MODELS if model.size == ModelSize.SMALL)
