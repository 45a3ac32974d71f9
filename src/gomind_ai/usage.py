"""
Token usage accounting for LLM API calls.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class TokenUsage:
    """
    Token usage reported by the provider for a single call.

    Attributes:
        prompt_tokens: Number of tokens in the prompt/input.
        completion_tokens: Number of tokens in the completion/output.
        total_tokens: Always prompt_tokens + completion_tokens.
        cost_usd: Estimated cost in USD for this call.
        model: Model name the provider reported.
        provider: Provider name (anthropic, openai, ...).
    """

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    cost_usd: float = 0.0
    model: str = ""
    provider: str = ""

    def __post_init__(self) -> None:
        """Clamp negative counts and keep total_tokens consistent."""
        self.prompt_tokens = max(0, int(self.prompt_tokens or 0))
        self.completion_tokens = max(0, int(self.completion_tokens or 0))
        self.total_tokens = self.prompt_tokens + self.completion_tokens

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for logging/display."""
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
            "cost_usd": self.cost_usd,
            "model": self.model,
            "provider": self.provider,
        }


class UsageTracker:
    """
    Cumulative request and token counters for one client.

    Safe to share between threads: every update happens under a lock.
    Nothing in the request path depends on the order in which concurrent
    calls update these counters.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.reset()

    def reset(self) -> None:
        with self._lock:
            self.requests = 0
            self.successes = 0
            self.attempts = 0
            self.retries = 0
            self.prompt_tokens = 0
            self.completion_tokens = 0
            self.total_tokens = 0
            self.cost_usd = 0.0
            self.failures: Dict[str, int] = {}

    def record_request(self) -> None:
        with self._lock:
            self.requests += 1

    def record_attempt(self, retry: bool = False) -> None:
        with self._lock:
            self.attempts += 1
            if retry:
                self.retries += 1

    def record_success(self, usage: TokenUsage) -> None:
        with self._lock:
            self.successes += 1
            self.prompt_tokens += usage.prompt_tokens
            self.completion_tokens += usage.completion_tokens
            self.total_tokens += usage.total_tokens
            self.cost_usd += usage.cost_usd

    def record_failure(self, kind: str) -> None:
        with self._lock:
            self.failures[kind] = self.failures.get(kind, 0) + 1

    def snapshot(self) -> Dict[str, Any]:
        """Return a consistent copy of every counter."""
        with self._lock:
            return {
                "requests": self.requests,
                "successes": self.successes,
                "attempts": self.attempts,
                "retries": self.retries,
                "prompt_tokens": self.prompt_tokens,
                "completion_tokens": self.completion_tokens,
                "total_tokens": self.total_tokens,
                "cost_usd": self.cost_usd,
                "failures": dict(self.failures),
            }

    def __str__(self) -> str:
        stats = self.snapshot()
        lines = [
            "\n" + "=" * 60,
            "📊 Usage Summary",
            "=" * 60,
            f"Requests: {stats['requests']:,} ({stats['successes']:,} succeeded)",
            f"HTTP attempts: {stats['attempts']:,} ({stats['retries']:,} retries)",
            f"Total Tokens: {stats['total_tokens']:,}",
            f"  - Prompt: {stats['prompt_tokens']:,}",
            f"  - Completion: {stats['completion_tokens']:,}",
            f"Total Cost: ${stats['cost_usd']:.6f}",
        ]
        if stats["failures"]:
            lines.append("\nFailures:")
            for kind, count in sorted(stats["failures"].items(), key=lambda x: -x[1]):
                lines.append(f"  - {kind}: {count}")
        lines.append("=" * 60 + "\n")
        return "\n".join(lines)


__all__ = ["TokenUsage", "UsageTracker"]
