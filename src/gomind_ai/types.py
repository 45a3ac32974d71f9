"""
Core request and response types shared by every provider adapter.

These primitives are provider-agnostic: adapters translate them to and from
their own wire formats, and callers never see provider-specific shapes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .usage import TokenUsage


class Role(str, Enum):
    """Conversation role."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass
class AIOptions:
    """
    Neutral request configuration.

    Zero values mean "not set": an empty model becomes the "default" alias,
    a non-positive max_tokens becomes the client default, a zero temperature
    is left out of the wire request and an empty system prompt is omitted.

    Attributes:
        model: Alias ("fast", "smart", ...) or concrete provider model id.
        max_tokens: Generation cap. 0 lets the client substitute its default.
        temperature: Sampling temperature in [0, 2].
        system_prompt: Optional system instruction.
    """

    model: str = ""
    max_tokens: int = 0
    temperature: float = 0.0
    system_prompt: str = ""

    def __post_init__(self) -> None:
        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError(f"temperature must be within [0, 2], got {self.temperature}")


@dataclass
class AIResponse:
    """
    Neutral response returned by every provider.

    `model` is the model the provider reports having used, which may differ
    from the id that was requested.
    """

    content: str
    model: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    provider: str = ""
    response_id: Optional[str] = None
    stop_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return a plain-JSON-safe representation for logging or debugging."""
        return {
            "content": self.content,
            "model": self.model,
            "provider": self.provider,
            "response_id": self.response_id,
            "stop_reason": self.stop_reason,
            "usage": self.usage.to_dict(),
        }


__all__ = ["Role", "AIOptions", "AIResponse"]
