"""
Provider abstraction and the provider-agnostic request lifecycle.

Adapters own the wire format of one upstream API. Everything else about a
call (option defaults, HTTP execution with retry and backoff, mapping HTTP
failures onto the error taxonomy, logging, tracing, usage counters) lives
in BaseClient, which adapters hold by composition.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from http import HTTPStatus
from typing import Callable, Mapping, Optional, Protocol, Tuple, runtime_checkable

import requests
from requests.structures import CaseInsensitiveDict

from ..config import ClientConfig
from ..context import RequestContext
from ..exceptions import (
    HTTPClientError,
    HTTPServerError,
    Phase,
    ProviderConfigurationError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
    RequestCanceledError,
    TransportError,
    UnauthorizedError,
)
from ..models import resolve_model
from ..observability import NoOpTracer, Span, StructuredLogger, Tracer
from ..types import AIOptions, AIResponse
from ..usage import TokenUsage, UsageTracker

ErrorParser = Callable[[bytes], Tuple[Optional[str], Optional[str]]]
"""Extracts (error_type, message) from a provider error body; (None, None) if absent."""

READ_CHUNK_SIZE = 16 * 1024


@runtime_checkable
class Provider(Protocol):
    """
    Interface every provider adapter must satisfy.

    `generate` is synchronous from the caller's point of view and safe to call
    from several threads at once; each call is independent.
    """

    name: str
    supports_streaming: bool

    def generate(
        self,
        prompt: str,
        options: Optional[AIOptions] = None,
        *,
        ctx: Optional[RequestContext] = None,
    ) -> AIResponse:
        """
        Send one prompt and return the neutral response.

        Raises:
            ProviderError: A subclass matching the failure's ErrorKind. No
                partial response is ever returned alongside an error.
        """
        ...


@dataclass(frozen=True)
class HTTPRequest:
    """Prepared request; the JSON body is immutable and safe to resend."""

    method: str
    url: str
    headers: Mapping[str, str]
    body: bytes


@dataclass
class HTTPResult:
    """Fully read 2xx response. The underlying connection is already released."""

    status_code: int
    body: bytes
    headers: Mapping[str, str] = field(default_factory=CaseInsensitiveDict)
    attempts: int = 1


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """
    Parse a Retry-After header into seconds.

    Accepts delta-seconds ("2", "1.5") or an HTTP date. Returns None for a
    missing, unparseable or non-finite value.
    """
    if not value:
        return None
    value = value.strip()
    try:
        seconds = float(value)
    except ValueError:
        try:
            when = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        seconds = (when - datetime.now(timezone.utc)).total_seconds()
    if not math.isfinite(seconds):
        return None
    return max(0.0, seconds)


class BaseClient:
    """
    Shared building blocks for one request/response cycle.

    Holds no per-request state: the session (connection pool), config,
    logger, tracer and usage tracker are shared by every concurrent call.
    """

    def __init__(
        self,
        provider: str,
        config: Optional[ClientConfig] = None,
        *,
        logger: Optional[StructuredLogger] = None,
        tracer: Optional[Tracer] = None,
        session: Optional[requests.Session] = None,
        usage: Optional[UsageTracker] = None,
    ):
        self.provider = provider
        self.config = config if config is not None else ClientConfig()
        self.logger = (logger or StructuredLogger("gomind_ai.providers")).bind(provider=provider)
        self.tracer: Tracer = tracer if tracer is not None else NoOpTracer()
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()
        self.usage = usage if usage is not None else UsageTracker()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    # ------------------------------------------------------------------
    # Generate template
    # ------------------------------------------------------------------

    def run(
        self,
        prompt: str,
        options: Optional[AIOptions],
        ctx: Optional[RequestContext],
        *,
        build: Callable[[str, AIOptions], HTTPRequest],
        parse: Callable[[bytes, str], AIResponse],
        error_parser: Optional[ErrorParser] = None,
        preflight: Optional[Callable[[], None]] = None,
    ) -> AIResponse:
        """
        Run one generate() call around an adapter's wire format.

        Args:
            prompt: User prompt.
            options: Caller options; defaults are applied and the model resolved.
            ctx: Deadline and cancellation.
            build: Turns (prompt, resolved options) into an HTTPRequest.
            parse: Turns (2xx body, requested model) into an AIResponse.
            error_parser: Reads the provider's error envelope.
            preflight: Raises ProviderConfigurationError before any I/O.

        Raises:
            ProviderError: Logged once, recorded on the span and counted.
        """
        ctx, span = self.start_span(ctx or RequestContext.background(), "ai.generate_response")
        try:
            span.set_attribute("ai.provider", self.provider)
            span.set_attribute("ai.prompt_length", len(prompt))
            self.usage.record_request()
            try:
                if preflight is not None:
                    preflight()
                options = self.apply_defaults(options)
                options = replace(options, model=resolve_model(self.provider, options.model))
                span.set_attribute("ai.model", options.model)

                self.log_request(self.provider, options.model, prompt)
                started = time.monotonic()
                result = self.execute_with_retry(ctx, build(prompt, options), error_parser)
                response = parse(result.body, options.model)
                elapsed = time.monotonic() - started
            except ProviderError as exc:
                self.report_failure(span, exc)
                raise

            span.set_attribute("ai.prompt_tokens", response.usage.prompt_tokens)
            span.set_attribute("ai.completion_tokens", response.usage.completion_tokens)
            span.set_attribute("ai.total_tokens", response.usage.total_tokens)
            span.set_attribute("ai.response_length", len(response.content))
            span.set_attribute("ai.latency_ms", round(elapsed * 1000, 2))
            span.set_attribute("ai.attempts", result.attempts)

            self.log_response(self.provider, response.model, response.usage, elapsed)
            self.log_response_content(self.provider, response.model, response.content)
            self.usage.record_success(response.usage)
            return response
        finally:
            span.end()

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    def apply_defaults(self, options: Optional[AIOptions]) -> AIOptions:
        """
        Return a copy of `options` with an empty model replaced by the
        configured default alias and a non-positive max_tokens replaced by
        the configured default. Temperature is left untouched. Idempotent.
        """
        if options is None:
            options = AIOptions()
        return replace(
            options,
            model=options.model or self.config.default_model,
            max_tokens=options.max_tokens if options.max_tokens > 0 else self.config.default_max_tokens,
        )

    # ------------------------------------------------------------------
    # Logging and tracing
    # ------------------------------------------------------------------

    def log_request(self, provider: str, model: str, prompt: str) -> None:
        fields = {
            "operation": "ai_request",
            "provider": provider,
            "model": model,
            "prompt_length": len(prompt),
        }
        if self.config.log_content:
            fields["prompt"] = prompt
        self.logger.info("AI request", fields)

    def log_response(self, provider: str, model: str, usage: TokenUsage, elapsed: float) -> None:
        self.logger.info(
            "AI response",
            {
                "operation": "ai_response",
                "provider": provider,
                "model": model,
                "prompt_tokens": usage.prompt_tokens,
                "completion_tokens": usage.completion_tokens,
                "total_tokens": usage.total_tokens,
                "latency_ms": round(elapsed * 1000, 2),
            },
        )

    def log_response_content(self, provider: str, model: str, content: str) -> None:
        """Log the response text, only when the content policy allows it."""
        if not self.config.log_content:
            return
        self.logger.info(
            "AI response content",
            {
                "operation": "ai_response_content",
                "provider": provider,
                "model": model,
                "response": content,
            },
        )

    def start_span(self, ctx: RequestContext, name: str) -> Tuple[RequestContext, Span]:
        span = self.tracer.start_span(name, parent=ctx.span)
        return ctx.with_span(span), span

    def record_error(self, span: Span, error: BaseException) -> None:
        span.record_error(error)
        status_code = getattr(error, "status_code", None)
        if status_code is not None:
            span.set_attribute("http.status_code", status_code)

    def report_failure(self, span: Span, error: ProviderError) -> None:
        """The single error-level record, span error and counter for a failed call."""
        fields = {
            "operation": "ai_request_error",
            "provider": error.provider or self.provider,
            "phase": error.phase,
            "error": error.message,
            "error_kind": error.kind.value,
        }
        if error.status_code is not None:
            fields["status_code"] = error.status_code
        if error.attempts > 1:
            fields["attempts"] = error.attempts
        self.logger.error("AI request failed", fields)
        self.record_error(span, error)
        self.usage.record_failure(error.kind.value)

    # ------------------------------------------------------------------
    # Request construction and error mapping
    # ------------------------------------------------------------------

    def build_request(self, url: str, headers: Mapping[str, str], body: bytes) -> HTTPRequest:
        """
        Validate the target URL and freeze the request.

        Raises:
            ProviderConfigurationError: The URL cannot be turned into an HTTP request.
        """
        merged = {**self.config.extra_headers, **headers}
        try:
            requests.Request("POST", url, headers=merged, data=body).prepare()
        except requests.exceptions.RequestException as exc:
            raise ProviderConfigurationError(
                self.provider, f"valid base URL ({exc})", phase=Phase.REQUEST_CREATION
            ) from exc
        return HTTPRequest(method="POST", url=url, headers=merged, body=body)

    def handle_error(
        self,
        status_code: int,
        body: bytes,
        provider_name: Optional[str] = None,
        *,
        headers: Optional[Mapping[str, str]] = None,
        error_parser: Optional[ErrorParser] = None,
    ) -> ProviderError:
        """
        Map a non-2xx response onto the error taxonomy.

        The provider's error envelope supplies the message and type when
        `error_parser` can read it; otherwise the raw body is carried.
        Redirects are never followed and surface as HTTPClientError.
        """
        provider_name = provider_name or self.provider
        headers = headers or {}
        text = body.decode("utf-8", errors="replace").strip()
        error_type, message = (None, None)
        if error_parser is not None:
            error_type, message = error_parser(body)
        if 300 <= status_code < 400:
            message = f"unexpected redirect to {headers.get('Location') or 'unknown location'}"
        if not message:
            message = text or _status_phrase(status_code)
        kwargs = dict(
            provider=provider_name,
            phase=Phase.API_RESPONSE,
            status_code=status_code,
            error_type=error_type,
            body=text,
        )

        if status_code in (401, 403):
            return UnauthorizedError(message, **kwargs)
        if status_code == 429:
            retry_after = parse_retry_after(headers.get("Retry-After"))
            return RateLimitError(message, retry_after=retry_after, **kwargs)
        if status_code >= 500:
            return HTTPServerError(message, **kwargs)
        return HTTPClientError(message, **kwargs)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def send(
        self,
        ctx: RequestContext,
        request: HTTPRequest,
        error_parser: Optional[ErrorParser] = None,
    ) -> HTTPResult:
        """
        Make exactly one HTTP attempt.

        Redirects are not followed. The response body is read in chunks,
        checking cancellation and the deadline between chunks, and the
        connection is released before this returns or raises.
        """
        remaining = ctx.remaining()
        timeout = self.config.request_timeout
        if remaining is not None:
            timeout = min(timeout, remaining)

        try:
            response = self.session.request(
                request.method,
                request.url,
                headers=dict(request.headers),
                data=request.body,
                timeout=timeout,
                stream=True,
                allow_redirects=False,
            )
        except requests.exceptions.Timeout as exc:
            raise self._timeout_error(ctx, exc, Phase.REQUEST_EXECUTION, timeout) from exc
        except requests.exceptions.RequestException as exc:
            raise TransportError(
                f"failed to send request: {exc}",
                provider=self.provider,
                phase=Phase.REQUEST_EXECUTION,
            ) from exc

        try:
            status_code = response.status_code
            headers = CaseInsensitiveDict(response.headers)
            body = self._read_body(ctx, response, timeout)
        finally:
            response.close()

        if 200 <= status_code < 300:
            return HTTPResult(status_code=status_code, body=body, headers=headers)
        raise self.handle_error(status_code, body, headers=headers, error_parser=error_parser)

    def _read_body(self, ctx: RequestContext, response: requests.Response, timeout: float) -> bytes:
        chunks = []
        try:
            for chunk in response.iter_content(chunk_size=READ_CHUNK_SIZE):
                if ctx.canceled:
                    raise RequestCanceledError(
                        "request canceled while reading the response",
                        provider=self.provider,
                        phase=Phase.RESPONSE_READ,
                        status_code=response.status_code,
                    )
                if ctx.expired():
                    raise ProviderTimeoutError(
                        "deadline exceeded while reading the response",
                        provider=self.provider,
                        phase=Phase.RESPONSE_READ,
                        status_code=response.status_code,
                    )
                chunks.append(chunk)
        except requests.exceptions.RequestException as exc:
            if ctx.expired():
                raise self._timeout_error(ctx, exc, Phase.RESPONSE_READ, timeout) from exc
            raise TransportError(
                f"failed to read response: {exc}",
                provider=self.provider,
                phase=Phase.RESPONSE_READ,
                status_code=response.status_code,
            ) from exc
        return b"".join(chunks)

    def execute_with_retry(
        self,
        ctx: RequestContext,
        request: HTTPRequest,
        error_parser: Optional[ErrorParser] = None,
    ) -> HTTPResult:
        """
        Send `request`, retrying transport errors, 5xx and 429.

        Attempts are strictly sequential and bounded by
        `config.retry.max_attempts`. Backoff uses full jitter; a 429 with a
        Retry-After hint waits at least that long, up to
        `config.retry.max_retry_after`. No wait runs past the caller's
        deadline, and cancellation is checked before every attempt and
        interrupts every wait.

        Raises:
            ProviderError: The first non-retryable failure, or the last
                retryable one with `attempts` set to the number of tries.
        """
        policy = self.config.retry
        last_error: Optional[ProviderError] = None

        for attempt in range(1, policy.max_attempts + 1):
            if attempt > 1:
                delay, hits_deadline = self._next_delay(attempt - 1, last_error, ctx)
                if hits_deadline:
                    if ctx.wait(delay):
                        raise self._canceled_error(attempt - 1) from last_error
                    raise ProviderTimeoutError(
                        "deadline exceeded while waiting to retry",
                        provider=self.provider,
                        phase=Phase.REQUEST_EXECUTION,
                        status_code=last_error.status_code,
                        attempts=attempt - 1,
                    ) from last_error
                self.logger.warning(
                    "Retrying request",
                    {
                        "operation": "ai_request_retry",
                        "attempt": attempt,
                        "max_attempts": policy.max_attempts,
                        "delay_ms": round(delay * 1000, 2),
                        "error": last_error.kind.value,
                        "status_code": last_error.status_code,
                    },
                )
                if ctx.wait(delay):
                    raise self._canceled_error(attempt - 1) from last_error

            if ctx.canceled:
                raise self._canceled_error(attempt - 1) from last_error
            if ctx.expired():
                raise ProviderTimeoutError(
                    "deadline exceeded before the request could be sent",
                    provider=self.provider,
                    phase=Phase.REQUEST_EXECUTION,
                    status_code=last_error.status_code if last_error else None,
                    attempts=attempt - 1,
                ) from last_error

            self.usage.record_attempt(retry=attempt > 1)
            try:
                result = self.send(ctx, request, error_parser)
            except ProviderError as exc:
                exc.attempts = attempt
                if not exc.retryable:
                    raise
                last_error = exc
                continue
            result.attempts = attempt
            return result

        assert last_error is not None
        raise last_error

    def _next_delay(
        self, retry_number: int, last_error: ProviderError, ctx: RequestContext
    ) -> Tuple[float, bool]:
        """Return (delay, hits_deadline); the delay never exceeds the remaining deadline."""
        policy = self.config.retry
        delay = policy.backoff(retry_number)
        if isinstance(last_error, RateLimitError) and last_error.retry_after is not None:
            delay = max(delay, min(last_error.retry_after, policy.max_retry_after))
        remaining = ctx.remaining()
        if remaining is not None and delay >= remaining:
            return remaining, True
        return delay, False

    def _canceled_error(self, attempts: int) -> RequestCanceledError:
        return RequestCanceledError(
            "request canceled by caller",
            provider=self.provider,
            phase=Phase.REQUEST_EXECUTION,
            attempts=attempts,
        )

    def _timeout_error(
        self, ctx: RequestContext, exc: Exception, phase: Phase, timeout: float
    ) -> ProviderError:
        if ctx.expired():
            return ProviderTimeoutError(
                f"deadline exceeded: {exc}", provider=self.provider, phase=phase
            )
        return TransportError(
            f"request timed out after {timeout:.2f}s: {exc}", provider=self.provider, phase=phase
        )


def _status_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return f"HTTP {status_code}"


__all__ = [
    "Provider",
    "HTTPRequest",
    "HTTPResult",
    "ErrorParser",
    "BaseClient",
    "parse_retry_after",
]
