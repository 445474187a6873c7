"""OpenAI models offered by the relay."""
from ..llm_provider_models import LLMInfo, ModelSize


OPENAI_MODELS = [
    LLMInfo(provider="openai", name="gpt-4o-mini", label="GPT-4o mini", model="gpt-4o-mini", size=ModelSize.SMALL),
    LLMInfo(provider="openai", name="gpt-4o", label="GPT-4o", model="gpt-4o", size=ModelSize.LARGE),
]

DEFAULT_MODEL = next(model for model in OPENAI_MODELS if model.size == ModelSize.SMALL)
