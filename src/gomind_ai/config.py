"""
Configuration options for provider clients.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

RandomFn = Callable[[], float]


@dataclass
class RetryPolicy:
    """
    Retry schedule for retryable failures (transport errors, 5xx, 429).

    Attributes:
        max_attempts: Total HTTP attempts including the first one. Default: 3.
        base_delay: Backoff base in seconds; doubles per retry. Default: 0.5.
        max_delay: Upper bound for a single backoff in seconds. Default: 10.0.
        jitter: Use full jitter (uniform in [0, bound]). When False the delay
                is the bound itself, which makes schedules deterministic.
                Default: True.
        max_retry_after: Upper bound in seconds for a provider Retry-After hint.
                         Default: 60.0.
        random_fn: Source of uniform values in [0, 1). Default: random.random.
    """

    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 10.0
    jitter: bool = True
    max_retry_after: float = 60.0
    random_fn: RandomFn = field(default=random.random, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")
        if self.max_delay < 0:
            raise ValueError("max_delay must be >= 0")
        if self.base_delay > self.max_delay:
            raise ValueError("base_delay must be <= max_delay")
        if not math.isfinite(self.max_retry_after) or self.max_retry_after < 0:
            raise ValueError("max_retry_after must be a finite value >= 0")

    def backoff(self, retry_number: int) -> float:
        """Return the delay in seconds before retry N (1-based)."""
        if retry_number <= 0:
            raise ValueError("retry_number must be > 0")
        bound = min(self.max_delay, self.base_delay * (2 ** (retry_number - 1)))
        if not self.jitter:
            return bound
        return self.random_fn() * bound


@dataclass
class ClientConfig:
    """
    Configuration shared by every provider adapter.

    Attributes:
        base_url: API root; None uses the provider's default endpoint.
        request_timeout: Per-attempt HTTP timeout in seconds. The caller's
                         deadline can shorten it. Default: 30.0.
        retry: Retry schedule. Default: RetryPolicy().
        default_model: Substituted for an empty model before alias resolution.
                       Default: "default".
        default_max_tokens: Substituted for a non-positive max_tokens. Default: 1000.
        log_content: Include prompt and response text in info-level records.
                     Default: False.
        extra_headers: Additional headers sent with every request.
        reasoning_token_multiplier: Factor applied to max_tokens for OpenAI
                                    reasoning models (gpt-5, o1, o3, o4), which
                                    spend hidden reasoning tokens from the same
                                    budget. Values <= 0 use the default. Default: 5.
    """

    base_url: Optional[str] = None
    request_timeout: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    default_model: str = "default"
    default_max_tokens: int = 1000
    log_content: bool = False
    extra_headers: Dict[str, str] = field(default_factory=dict)
    reasoning_token_multiplier: int = 5


__all__ = ["RetryPolicy", "ClientConfig"]
