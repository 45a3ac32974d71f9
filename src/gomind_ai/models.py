"""
Model registry and portable model aliases.

Callers may ask for a portable alias ("fast", "smart", "premium", "default",
"code", "vision") instead of a provider-specific id. Each provider alias has
its own static table, and any alias can be overridden at runtime through an
environment variable named `<ENV_PREFIX><ALIAS_UPPER>`.

Example:
    >>> from gomind_ai.models import resolve_model
    >>> resolve_model("anthropic", "fast")
    'claude-haiku-4-5-20251001'
    >>> resolve_model("anthropic", "claude-3-opus-20240229")  # pass-through
    'claude-3-opus-20240229'
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional


@dataclass(frozen=True)
class ModelInfo:
    """
    Pricing and limits for one concrete model.

    Attributes:
        id: Model identifier as sent on the wire.
        provider: Provider alias that serves the model.
        prompt_cost: Cost in USD per 1M input tokens.
        completion_cost: Cost in USD per 1M output tokens.
        max_tokens: Maximum output tokens per request.
        context_window: Maximum context length in tokens.
    """

    id: str
    provider: str
    prompt_cost: float
    completion_cost: float
    max_tokens: int
    context_window: int


# =============================================================================
# Anthropic Models
# =============================================================================


class Anthropic:
    """Anthropic Claude models with pricing and capabilities."""

    OPUS_4_1 = ModelInfo(
        id="claude-opus-4-1-20250805",
        provider="anthropic",
        prompt_cost=15.00,
        completion_cost=75.00,
        max_tokens=32000,
        context_window=200000,
    )
    SONNET_4_5 = ModelInfo(
        id="claude-sonnet-4-5-20250929",
        provider="anthropic",
        prompt_cost=3.00,
        completion_cost=15.00,
        max_tokens=64000,
        context_window=200000,
    )
    HAIKU_4_5 = ModelInfo(
        id="claude-haiku-4-5-20251001",
        provider="anthropic",
        prompt_cost=1.00,
        completion_cost=5.00,
        max_tokens=64000,
        context_window=200000,
    )
    SONNET_3_5 = ModelInfo(
        id="claude-3-5-sonnet-20241022",
        provider="anthropic",
        prompt_cost=3.00,
        completion_cost=15.00,
        max_tokens=8192,
        context_window=200000,
    )
    OPUS_3 = ModelInfo(
        id="claude-3-opus-20240229",
        provider="anthropic",
        prompt_cost=15.00,
        completion_cost=75.00,
        max_tokens=4096,
        context_window=200000,
    )
    HAIKU_3 = ModelInfo(
        id="claude-3-haiku-20240307",
        provider="anthropic",
        prompt_cost=0.25,
        completion_cost=1.25,
        max_tokens=4096,
        context_window=200000,
    )


# =============================================================================
# OpenAI Models
# =============================================================================


class OpenAI:
    """OpenAI GPT models with pricing and capabilities."""

    GPT_4O = ModelInfo(
        id="gpt-4o",
        provider="openai",
        prompt_cost=2.50,
        completion_cost=10.00,
        max_tokens=16384,
        context_window=128000,
    )
    GPT_4O_MINI = ModelInfo(
        id="gpt-4o-mini",
        provider="openai",
        prompt_cost=0.15,
        completion_cost=0.60,
        max_tokens=16384,
        context_window=128000,
    )
    GPT_4 = ModelInfo(
        id="gpt-4",
        provider="openai",
        prompt_cost=30.00,
        completion_cost=60.00,
        max_tokens=8192,
        context_window=8192,
    )
    GPT_3_5_TURBO = ModelInfo(
        id="gpt-3.5-turbo",
        provider="openai",
        prompt_cost=0.50,
        completion_cost=1.50,
        max_tokens=4096,
        context_window=16385,
    )


class DeepSeek:
    """DeepSeek models served through the OpenAI-compatible API."""

    CHAT = ModelInfo(
        id="deepseek-chat",
        provider="openai.deepseek",
        prompt_cost=0.27,
        completion_cost=1.10,
        max_tokens=8192,
        context_window=64000,
    )
    REASONER = ModelInfo(
        id="deepseek-reasoner",
        provider="openai.deepseek",
        prompt_cost=0.55,
        completion_cost=2.19,
        max_tokens=8192,
        context_window=64000,
    )


# =============================================================================
# Alias tables
# =============================================================================

_ALIASES: Dict[str, Dict[str, str]] = {
    "anthropic": {
        "default": Anthropic.SONNET_4_5.id,
        "fast": Anthropic.HAIKU_4_5.id,
        "smart": Anthropic.SONNET_4_5.id,
        "premium": Anthropic.OPUS_4_1.id,
        "code": Anthropic.SONNET_4_5.id,
        "vision": Anthropic.SONNET_4_5.id,
    },
    "openai": {
        "default": OpenAI.GPT_4O_MINI.id,
        "fast": OpenAI.GPT_4O_MINI.id,
        "smart": OpenAI.GPT_4O.id,
        "premium": OpenAI.GPT_4O.id,
        "code": OpenAI.GPT_4O.id,
        "vision": OpenAI.GPT_4O.id,
    },
    "openai.deepseek": {
        "default": DeepSeek.CHAT.id,
        "fast": DeepSeek.CHAT.id,
        "smart": DeepSeek.REASONER.id,
        "premium": DeepSeek.REASONER.id,
        "code": "deepseek-coder",
    },
    "openai.groq": {
        "default": "llama-3.3-70b-versatile",
        "fast": "llama-3.1-8b-instant",
        "smart": "llama-3.3-70b-versatile",
        "code": "llama-3.3-70b-versatile",
    },
    "openai.together": {
        "default": "meta-llama/Llama-3-70b-chat-hf",
        "fast": "meta-llama/Llama-3-8b-chat-hf",
        "smart": "meta-llama/Llama-3-70b-chat-hf",
        "code": "deepseek-ai/deepseek-coder-33b-instruct",
    },
    "openai.xai": {
        "default": "grok-2",
        "fast": "grok-2",
        "smart": "grok-2",
        "code": "grok-2",
    },
    "openai.qwen": {
        "default": "qwen-turbo",
        "fast": "qwen-turbo",
        "smart": "qwen-plus",
        "code": "qwen-plus",
    },
    "openai.ollama": {
        "default": "llama3.2",
        "fast": "llama3.2",
        "smart": "llama3.1:70b",
        "code": "codellama",
        "vision": "llava",
    },
}

MODEL_ALIASES: Mapping[str, Mapping[str, str]] = MappingProxyType(
    {provider: MappingProxyType(dict(table)) for provider, table in _ALIASES.items()}
)
"""Read-only alias tables keyed by provider alias."""

ENV_PREFIXES: Mapping[str, str] = MappingProxyType(
    {
        "anthropic": "GOMIND_ANTHROPIC_MODEL_",
        "openai": "GOMIND_OPENAI_MODEL_",
        "openai.deepseek": "GOMIND_DEEPSEEK_MODEL_",
        "openai.groq": "GOMIND_GROQ_MODEL_",
        "openai.together": "GOMIND_TOGETHER_MODEL_",
        "openai.xai": "GOMIND_XAI_MODEL_",
        "openai.qwen": "GOMIND_QWEN_MODEL_",
        "openai.ollama": "GOMIND_OLLAMA_MODEL_",
    }
)
"""Environment-variable prefix used for alias overrides, per provider alias."""


def env_override_key(provider: str, name: str) -> Optional[str]:
    """Return the environment variable that overrides `name` for `provider`."""
    prefix = ENV_PREFIXES.get(provider)
    if prefix is None:
        return None
    return prefix + name.upper()


def resolve_model(
    provider: str, name: str, environ: Optional[Mapping[str, str]] = None
) -> str:
    """
    Map a model alias to the concrete id to send on the wire.

    Resolution order:
        1. A non-empty `<ENV_PREFIX><NAME_UPPER>` environment variable.
        2. An exact (case-sensitive) match in the provider's alias table.
        3. The name itself, unchanged.

    Args:
        provider: Provider alias ("anthropic", "openai", "openai.groq", ...).
        name: Alias or concrete model id. Callers substitute "default" for
              an empty name before resolving.
        environ: Environment mapping to read; defaults to os.environ.

    Returns:
        The concrete model id.
    """
    env = os.environ if environ is None else environ
    key = env_override_key(provider, name)
    if key:
        override = env.get(key)
        if override:
            return override
    return MODEL_ALIASES.get(provider, {}).get(name, name)


def _collect_all_models() -> List[ModelInfo]:
    """Collect all model definitions from provider classes."""
    models = []
    for provider_class in [Anthropic, OpenAI, DeepSeek]:
        for attr_name in dir(provider_class):
            if attr_name.startswith("_"):
                continue
            attr = getattr(provider_class, attr_name)
            if isinstance(attr, ModelInfo):
                models.append(attr)
    return models


ALL_MODELS: List[ModelInfo] = _collect_all_models()
"""Every model with known pricing."""

MODELS_BY_ID: Dict[str, ModelInfo] = {model.id: model for model in ALL_MODELS}
"""Quick lookup dictionary mapping model ID to ModelInfo."""


__all__ = [
    "ModelInfo",
    "Anthropic",
    "OpenAI",
    "DeepSeek",
    "MODEL_ALIASES",
    "ENV_PREFIXES",
    "env_override_key",
    "resolve_model",
    "ALL_MODELS",
    "MODELS_BY_ID",
]
