"""Model descriptions shared by the provider backends."""
from dataclasses import dataclass
from enum import IntEnum


class ModelSize(IntEnum):
    """Rough capability tier, used to pick a provider's default model."""
    SMALL = 2
    MEDIUM = 3
    LARGE = 4


@dataclass(frozen=True)
class LLMInfo:
    """One model a provider offers."""
    provider: str
    name: str  # configuration name, accepted as CHAT_MODEL
    label: str
    model: str  # name sent to the API
    size: ModelSize = ModelSize.MEDIUM
