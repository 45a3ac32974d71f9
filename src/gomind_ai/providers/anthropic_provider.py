"""
Anthropic provider adapter for the native Messages API.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Tuple

import requests

from ..config import ClientConfig
from ..context import RequestContext
from ..exceptions import (
    DecodeError,
    Phase,
    ProviderConfigurationError,
    SemanticError,
)
from ..observability import StructuredLogger, Tracer
from ..pricing import calculate_cost
from ..types import AIOptions, AIResponse, Role
from ..usage import TokenUsage, UsageTracker
from .base import BaseClient, HTTPRequest, Provider

DEFAULT_BASE_URL = "https://api.anthropic.com/v1"
API_VERSION = "2023-06-01"


def parse_error_envelope(body: bytes) -> Tuple[Optional[str], Optional[str]]:
    """Read `{"type": "error", "error": {"type": ..., "message": ...}}`."""
    try:
        data = json.loads(body)
    except ValueError:
        return None, None
    error = data.get("error") if isinstance(data, dict) else None
    if not isinstance(error, dict):
        return None, None
    return error.get("type"), error.get("message")


class AnthropicProvider(Provider):
    """
    Anthropic Messages API adapter.

    Model names may be portable aliases ("fast", "smart", "premium", ...);
    they are resolved against the Anthropic alias table, and any alias can be
    overridden with `GOMIND_ANTHROPIC_MODEL_<ALIAS>`.

    Example:
        >>> provider = AnthropicProvider(api_key=os.environ["ANTHROPIC_API_KEY"])
        >>> response = provider.generate("Summarize RFC 9110", AIOptions(model="fast"))
        >>> response.usage.total_tokens
    """

    name = "anthropic"
    supports_streaming = False

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        *,
        config: Optional[ClientConfig] = None,
        logger: Optional[StructuredLogger] = None,
        tracer: Optional[Tracer] = None,
        session: Optional[requests.Session] = None,
        usage: Optional[UsageTracker] = None,
    ):
        """
        Args:
            api_key: Anthropic API key. An empty key is accepted here and
                     reported as a configuration error on the first call.
            base_url: API root. Defaults to config.base_url, then the public endpoint.
            config: Retry, timeout and default settings.
            logger: Structured logger; defaults to the "gomind_ai.providers" logger.
            tracer: Tracer for spans; tracing is disabled when omitted.
            session: requests session to share a connection pool between clients.
            usage: Usage tracker to share between clients.
        """
        config = config if config is not None else ClientConfig()
        self.api_key = api_key or ""
        self.base_url = (base_url or config.base_url or DEFAULT_BASE_URL).rstrip("/")
        self._base = BaseClient(
            self.name, config, logger=logger, tracer=tracer, session=session, usage=usage
        )

    @property
    def usage(self) -> UsageTracker:
        return self._base.usage

    def close(self) -> None:
        self._base.close()

    def __enter__(self) -> "AnthropicProvider":
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
        """
        Generate a response with the Messages API.

        Args:
            prompt: User message, sent verbatim.
            options: Model, max_tokens, temperature and system prompt.
            ctx: Deadline and cancellation for this call.

        Returns:
            AIResponse with the concatenated text blocks and token usage.

        Raises:
            ProviderConfigurationError: No API key; raised before any network I/O.
            ProviderError: Any other failure, classified by ErrorKind.
        """
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
        if not self.api_key:
            raise ProviderConfigurationError(self.name, "API key", env_var="ANTHROPIC_API_KEY")

    def _build_payload(self, prompt: str, options: AIOptions) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": options.model,
            "messages": [{"role": Role.USER.value, "content": prompt}],
            "max_tokens": options.max_tokens,
        }
        if options.temperature > 0:
            payload["temperature"] = options.temperature
        if options.system_prompt:
            payload["system"] = options.system_prompt
        return payload

    def _build_request(self, prompt: str, options: AIOptions) -> HTTPRequest:
        body = json.dumps(self._build_payload(prompt, options)).encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": API_VERSION,
        }
        return self._base.build_request(f"{self.base_url}/messages", headers, body)

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
        if not isinstance(data, dict) or not isinstance(data.get("content", []), list):
            raise DecodeError(
                "response is not a Messages API envelope",
                provider=self.name,
                phase=Phase.RESPONSE_PARSE,
                body=body.decode("utf-8", errors="replace"),
            )

        content = "".join(
            block["text"]
            for block in data.get("content") or []
            if isinstance(block, dict)
            and block.get("type") == "text"
            and isinstance(block.get("text"), str)
        )
        if not content:
            raise SemanticError(
                "no text content in response", provider=self.name, phase=Phase.RESPONSE_VALIDATION
            )

        model = data.get("model") or requested_model
        raw_usage = data.get("usage") or {}
        try:
            prompt_tokens = int(raw_usage.get("input_tokens") or 0)
            completion_tokens = int(raw_usage.get("output_tokens") or 0)
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
            stop_reason=data.get("stop_reason"),
        )


__all__ = ["AnthropicProvider", "API_VERSION", "DEFAULT_BASE_URL", "parse_error_envelope"]
