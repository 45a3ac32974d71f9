"""
Mock provider for offline testing and development.

This provider doesn't call any external API. It replays scripted responses
and can be told to fail, which makes it useful for exercising callers.
"""

from __future__ import annotations

import copy
import threading
from typing import List, Optional, Sequence

from ..config import ClientConfig
from ..context import RequestContext
from ..exceptions import Phase, ProviderError, RequestCanceledError
from ..observability import StructuredLogger, Tracer
from ..types import AIOptions, AIResponse
from ..usage import TokenUsage
from .base import BaseClient, Provider


class MockProvider(Provider):
    """
    Scripted provider.

    Responses are returned in order and cycle once exhausted. Setting
    `error` makes every call raise a fresh copy of it instead. Model names
    are passed through unchanged.
    """

    name = "mock"
    supports_streaming = False

    def __init__(
        self,
        responses: Optional[Sequence[str]] = None,
        *,
        error: Optional[ProviderError] = None,
        config: Optional[ClientConfig] = None,
        logger: Optional[StructuredLogger] = None,
        tracer: Optional[Tracer] = None,
    ):
        self.responses: List[str] = list(responses or ["Mock response"])
        self.error = error
        self.call_count = 0
        self.last_prompt: Optional[str] = None
        self.last_options: Optional[AIOptions] = None
        self._lock = threading.Lock()
        self._base = BaseClient(self.name, config, logger=logger, tracer=tracer)

    @property
    def usage(self):
        return self._base.usage

    def close(self) -> None:
        self._base.close()

    def generate(
        self,
        prompt: str,
        options: Optional[AIOptions] = None,
        *,
        ctx: Optional[RequestContext] = None,
    ) -> AIResponse:
        ctx, span = self._base.start_span(ctx or RequestContext.background(), "ai.generate_response")
        try:
            span.set_attribute("ai.provider", self.name)
            self._base.usage.record_request()
            options = self._base.apply_defaults(options)
            with self._lock:
                index = self.call_count
                self.call_count += 1
                self.last_prompt = prompt
                self.last_options = options
            try:
                if ctx.canceled:
                    raise RequestCanceledError(
                        "request canceled by caller",
                        provider=self.name,
                        phase=Phase.REQUEST_EXECUTION,
                    )
                if self.error is not None:
                    raise copy.copy(self.error)
            except ProviderError as exc:
                self._base.report_failure(span, exc)
                raise

            self._base.log_request(self.name, options.model, prompt)
            content = self.responses[index % len(self.responses)]
            usage = TokenUsage(
                prompt_tokens=len(prompt.split()),
                completion_tokens=len(content.split()),
                model=options.model,
                provider=self.name,
            )
            self._base.log_response(self.name, options.model, usage, 0.0)
            self._base.usage.record_success(usage)
            span.set_attribute("ai.model", options.model)
            span.set_attribute("ai.total_tokens", usage.total_tokens)
            return AIResponse(content=content, model=options.model, usage=usage, provider=self.name)
        finally:
            span.end()


__all__ = ["MockProvider"]
