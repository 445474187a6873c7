"""DeepSeek provider package."""
from .deepseek_models import DEEPSEEK_MODELS

__all__ = ['DEEPSEEK_MODELS']
