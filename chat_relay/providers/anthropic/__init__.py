"""Anthropic provider package."""
from .anthropic_models import ANTHROPIC_MODELS

__all__ = ['ANTHROPIC_MODELS']
