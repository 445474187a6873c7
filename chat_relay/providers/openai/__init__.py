"""OpenAI provider package."""
from .openai_models import OPENAI_MODELS

__all__ = ['OPENAI_MODELS']
