"""DeepSeek models offered by the relay."""
from ..llm_provider_models import LLMInfo, ModelSize


DEEPSEEK_API_BASE = "https://api.deepseek.com/v1"

DEEPSEEK_MODELS = [
    LLMInfo(provider="deepseek", name="deepseek_chat", label="DeepSeek V3", model="deepseek-chat"),
    LLMInfo(
        provider="deepseek",
        name="deepseek_reasoner",
        label="DeepSeek R1",
        model="deepseek-reasoner",
        size=ModelSize.LARGE,
    ),
]

DEFAULT_MODEL = next(model for model in DEEPSEEK_MODELS if model.size == ModelSize.MEDIUM)
