"""Provider implementations for the supported LLM backends."""

from .anthropic_provider import AnthropicProvider
from .base import BaseClient, Provider
from .openai_provider import OpenAIProvider
from .stubs import MockProvider

__all__ = [
    "Provider",
    "BaseClient",
    "AnthropicProvider",
    "OpenAIProvider",
    "MockProvider",
]
