"""
OpenAI-compatible chat-completions adapter.

One adapter serves OpenAI itself and the services that expose the same API
(DeepSeek, Groq, xAI, Qwen, Together, a local Ollama). The provider alias
selects the default endpoint, the alias table and the environment prefix
for model overrides.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Optional, Tuple

import requests

from ..config import ClientConfig
from ..context import RequestContext
from ..exceptions import (
    DecodeError,
    Phase,
    ProviderConfigurationError,
    SemanticError,
)
from ..models import MODEL_ALIASES
from ..observability import StructuredLogger, Tracer
from ..pricing import calculate_cost
from ..types import AIOptions, AIResponse, Role
from ..usage import TokenUsage, UsageTracker
from .base import BaseClient, HTTPRequest, Provider

DEFAULT_BASE_URLS: Mapping[str, str] = {
    "openai": "https://api.openai.com/v1",
    "openai.deepseek": "https://api.deepseek.com",
    "openai.groq": "https://api.groq.com/openai/v1",
    "openai.xai": "https://api.x.ai/v1",
    "openai.qwen": "https://dashscope-intl.aliyuncs.com/compatible-mode/v1",
    "openai.together": "https://api.together.xyz/v1",
    "openai.ollama": "http://localhost:11434/v1",
}

API_KEY_ENV_VARS: Mapping[str, str] = {
    "openai": "OPENAI_API_KEY",
    "openai.deepseek": "DEEPSEEK_API_KEY",
    "openai.groq": "GROQ_API_KEY",
    "openai.xai": "XAI_API_KEY",
    "openai.qwen": "QWEN_API_KEY",
    "openai.together": "TOGETHER_API_KEY",
}

KEYLESS_PROVIDERS = frozenset({"openai.ollama"})

REASONING_MODEL_PREFIXES = ("gpt-5", "o1", "o3", "o4")
DEFAULT_REASONING_TOKEN_MULTIPLIER = 5


def is_reasoning_model(model: str) -> bool:
    """
    True for OpenAI reasoning models (gpt-5, o1, o3, o4 families).

    They take `max_completion_tokens` instead of `max_tokens`, reject
    `temperature`, and count hidden reasoning tokens against the budget.
    """
    return model.lower().startswith(REASONING_MODEL_PREFIXES)


def parse_error_envelope(body: bytes) -> Tuple[Optional[str], Optional[str]]:
    """Read `{"error": {"message": ..., "type": ..., "code": ...}}`."""
    try:
        data = json.loads(body)
    except ValueError:
        return None, None
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, str):
        return None, error
    if not isinstance(error, dict):
        return None, None
    return error.get("type") or error.get("code"), error.get("message")


class OpenAIProvider(Provider):
    """
    Adapter for `/chat/completions` on OpenAI and compatible services.

    Example:
        >>> provider = OpenAIProvider(api_key=os.environ["GROQ_API_KEY"], provider_alias="openai.groq")
        >>> provider.generate("Hello", AIOptions(model="fast")).model
        'llama-3.1-8b-instant'
    """

    supports_streaming = False

    def __init__(
        self,
        api_key: str = "",
        base_url: Optional[str] = None,
        *,
        provider_alias: str = "openai",
        config: Optional[ClientConfig] = None,
        logger: Optional[StructuredLogger] = None,
        tracer: Optional[Tracer] = None,
        session: Optional[requests.Session] = None,
        usage: Optional[UsageTracker] = None,
    ):
        """
        Args:
            api_key: Bearer credential. Required except for "openai.ollama".
            base_url: API root. Defaults to config.base_url, then the alias default.
            provider_alias: "openai" or one of the "openai.<service>" aliases.
            config: Retry, timeout and default settings.
            logger: Structured logger.
            tracer: Tracer for spans; tracing is disabled when omitted.
            session: requests session to share a connection pool between clients.
            usage: Usage tracker to share between clients.

        Raises:
            ValueError: Unknown provider alias.
        """
        if provider_alias not in DEFAULT_BASE_URLS:
            known = ", ".join(sorted(DEFAULT_BASE_URLS))
            raise ValueError(f"Unknown provider alias '{provider_alias}'. Known aliases: {known}")
        config = config if config is not None else ClientConfig()
        self.name = provider_alias
        self.api_key = api_key or ""
        self.base_url = (base_url or config.base_url or DEFAULT_BASE_URLS[provider_alias]).rstrip("/")
        self._base = BaseClient(
            self.name, config, logger=logger, tracer=tracer, session=session, usage=usage
        )

    @property
    def usage(self) -> UsageTracker:
        return self._base.usage

    @property
    def aliases(self) -> Mapping[str, str]:
        return MODEL_ALIASES.get(self.name, {})

    def close(self) -> None:
        self._base.close()

    def __enter__(self) -> "OpenAIProvider":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def generate(
        self,
        prompt: str,
        options: Optional[AIOptions] = None,
        *,
        ctx: Optional[RequestContext] = None,
    ) -> AIResponse:
        """Generate a chat completion; same contract as AnthropicProvider.generate."""
        return self._base.run(
            prompt,
            options,
            ctx,
            build=self._build_request,
            parse=self._parse_response,
            error_parser=parse_error_envelope,
            preflight=self._check_api_key,
        )

    def _check_api_key(self) -> None:
        if not self.api_key and self.name not in KEYLESS_PROVIDERS:
            raise ProviderConfigurationError(
                self.name, "API key", env_var=API_KEY_ENV_VARS.get(self.name, "")
            )

    def _build_request(self, prompt: str, options: AIOptions) -> HTTPRequest:
        messages = []
        if options.system_prompt:
            messages.append({"role": Role.SYSTEM.value, "content": options.system_prompt})
        messages.append({"role": Role.USER.value, "content": prompt})

        payload: Dict[str, Any] = {"model": options.model, "messages": messages}
        if is_reasoning_model(options.model):
            multiplier = self._base.config.reasoning_token_multiplier
            if multiplier <= 0:
                multiplier = DEFAULT_REASONING_TOKEN_MULTIPLIER
            payload["max_completion_tokens"] = options.max_tokens * multiplier
        else:
            payload["max_tokens"] = options.max_tokens
            if options.temperature > 0:
                payload["temperature"] = options.temperature

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        body = json.dumps(payload).encode("utf-8")
        return self._base.build_request(f"{self.base_url}/chat/completions", headers, body)

    def _parse_response(self, body: bytes, requested_model: str) -> AIResponse:
        try:
            data = json.loads(body)
        except ValueError as exc:
            raise DecodeError(
                f"failed to parse response: {exc}",
                provider=self.name,
                phase=Phase.RESPONSE_PARSE,
                body=body.decode("utf-8", errors="replace"),
            ) from exc
        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list):
            raise DecodeError(
                "response has no choices array",
                provider=self.name,
                phase=Phase.RESPONSE_PARSE,
                body=body.decode("utf-8", errors="replace"),
            )

        first = choices[0] if choices and isinstance(choices[0], dict) else {}
        message = first.get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content:
            raise SemanticError(
                "no text content in response", provider=self.name, phase=Phase.RESPONSE_VALIDATION
            )

        model = data.get("model") or requested_model
        raw_usage = data.get("usage") or {}
        try:
            prompt_tokens = int(raw_usage.get("prompt_tokens") or 0)
            completion_tokens = int(raw_usage.get("completion_tokens") or 0)
        except (AttributeError, TypeError, ValueError) as exc:
            raise DecodeError(
                f"malformed usage block: {raw_usage!r}", provider=self.name, phase=Phase.RESPONSE_PARSE
            ) from exc

        usage = TokenUsage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            cost_usd=calculate_cost(model, prompt_tokens, completion_tokens),
            model=model,
            provider=self.name,
        )
        return AIResponse(
            content=content,
            model=model,
            usage=usage,
            provider=self.name,
            response_id=data.get("id"),
            stop_reason=first.get("finish_reason"),
        )


__all__ = [
    "OpenAIProvider",
    "DEFAULT_BASE_URLS",
    "API_KEY_ENV_VARS",
    "KEYLESS_PROVIDERS",
    "DEFAULT_REASONING_TOKEN_MULTIPLIER",
    "is_reasoning_model",
    "parse_error_envelope",
]
