"""
Provider failover.

ChainClient tries a list of providers in order and returns the first
successful response. Unknown provider names fail when the chain is built;
providers whose credentials are missing are skipped with a warning so a
partially configured chain still works.

Example:
    >>> chain = ChainClient(["openai", "openai.deepseek", "anthropic"])
    >>> chain.generate("Summarize RFC 9110", AIOptions(model="smart"))
"""

from __future__ import annotations

import os
import time
from typing import Any, List, Mapping, Optional, Sequence, Union

from .config import ClientConfig
from .context import RequestContext
from .env import load_default_env
from .exceptions import ErrorKind, ProviderConfigurationError, ProviderError
from .observability import NoOpTracer, StructuredLogger, Tracer
from .providers.base import Provider
from .registry import create_client, get_factory, list_providers
from .types import AIOptions, AIResponse
from .usage import UsageTracker

# Failures that another provider, with its own key, quota and backend, may not repeat.
FAILOVER_KINDS = frozenset(
    {
        ErrorKind.CONFIG,
        ErrorKind.TRANSPORT,
        ErrorKind.UNAUTHORIZED,
        ErrorKind.RATE_LIMITED,
        ErrorKind.HTTP_SERVER,
        ErrorKind.DECODE,
        ErrorKind.SEMANTIC,
    }
)


def should_failover(error: ProviderError) -> bool:
    return error.kind in FAILOVER_KINDS


class ChainClient(Provider):
    """
    Provider that fails over across other providers in order.

    Each provider resolves the caller's model alias against its own table,
    so `AIOptions(model="smart")` means the smart model of whichever
    provider answers.
    """

    name = "chain"
    supports_streaming = False

    def __init__(
        self,
        providers: Sequence[Union[str, Provider]],
        *,
        config: Optional[ClientConfig] = None,
        logger: Optional[StructuredLogger] = None,
        tracer: Optional[Tracer] = None,
        environ: Optional[Mapping[str, str]] = None,
        load_env: bool = True,
    ):
        """
        Args:
            providers: Registered provider names and/or ready Provider
                       instances, in the order they are tried.
            config: Client configuration for providers built from names.
            logger: Structured logger, shared with the built providers.
            tracer: Tracer for the chain span and the provider spans.
            environ: Environment to read instead of os.environ.
            load_env: Load a .env file first (ignored when `environ` is given).

        Raises:
            ValueError: Empty chain or an unregistered provider name.
            ProviderConfigurationError: No provider in the chain is configured.
        """
        if not providers:
            raise ValueError("At least one provider is required for a chain")
        for entry in providers:
            if isinstance(entry, str) and get_factory(entry) is None:
                raise ValueError(
                    f"Unknown provider '{entry}' in chain. "
                    f"Registered providers: {', '.join(list_providers())}"
                )

        if environ is None:
            if load_env:
                load_default_env()
            environ = os.environ

        self.logger = (logger or StructuredLogger("gomind_ai.chain")).bind(provider=self.name)
        self.tracer: Tracer = tracer if tracer is not None else NoOpTracer()
        self.usage = UsageTracker()
        self.providers: List[Provider] = []
        self.aliases: List[str] = []
        self._owned: List[Provider] = []

        for entry in providers:
            if not isinstance(entry, str):
                self.providers.append(entry)
                self.aliases.append(entry.name)
                continue
            factory = get_factory(entry)
            if not factory.has_credentials(environ):
                self.logger.warning(
                    "Provider not available, skipping in chain",
                    {
                        "operation": "ai_chain_init",
                        "alias": entry,
                        "error": f"{factory.credential_var} not set",
                    },
                )
                continue
            client = create_client(
                entry,
                config=config,
                logger=logger,
                tracer=tracer,
                environ=environ,
                load_env=False,
            )
            self.providers.append(client)
            self.aliases.append(entry)
            self._owned.append(client)

        if not self.providers:
            raise ProviderConfigurationError(
                "chain",
                f"credentials for any of: {', '.join(str(p) for p in providers)}",
            )

        self.logger.info(
            "Chain client initialized",
            {
                "operation": "ai_chain_init",
                "requested_providers": len(providers),
                "available_providers": len(self.providers),
            },
        )

    def close(self) -> None:
        for provider in self._owned:
            close = getattr(provider, "close", None)
            if close is not None:
                close()

    def __enter__(self) -> "ChainClient":
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
        Try each provider until one succeeds.

        Raises:
            ProviderError: The first failure that should not fail over
                (bad request, timeout, cancellation), or the last provider's
                failure once the chain is exhausted.
        """
        ctx = ctx or RequestContext.background()
        span = self.tracer.start_span("ai.chain.generate_response", parent=ctx.span)
        started = time.monotonic()
        original_model = options.model if options is not None else ""
        failed: List[str] = []
        last_error: Optional[ProviderError] = None
        self.usage.record_request()
        try:
            span.set_attribute("ai.chain.providers_count", len(self.providers))
            span.set_attribute("ai.chain.original_model", original_model)
            span.set_attribute("ai.prompt_length", len(prompt))

            for index, (alias, provider) in enumerate(zip(self.aliases, self.providers)):
                attempt_span = self.tracer.start_span("ai.chain.provider_attempt", parent=span)
                attempt_span.set_attribute("ai.chain.provider_index", index)
                attempt_span.set_attribute("ai.chain.provider_alias", alias)
                attempt_started = time.monotonic()
                try:
                    response = provider.generate(prompt, options, ctx=ctx.with_span(attempt_span))
                except ProviderError as exc:
                    last_error = exc
                    failed.append(alias)
                    attempt_span.set_attribute("ai.chain.attempt_status", "failed")
                    attempt_span.record_error(exc)
                    attempt_span.end()
                    if not should_failover(exc):
                        self.logger.error(
                            "Chain aborted on an error other providers would repeat",
                            {
                                "operation": "ai_chain_abort",
                                "alias": alias,
                                "error_kind": exc.kind.value,
                                "failed_providers": ",".join(failed),
                            },
                        )
                        span.set_attribute("ai.chain.status", "aborted")
                        span.record_error(exc)
                        self.usage.record_failure(exc.kind.value)
                        raise
                    self.logger.warning(
                        "Provider failed in chain, trying next",
                        {
                            "operation": "ai_chain_provider_failed",
                            "alias": alias,
                            "error_kind": exc.kind.value,
                            "remaining": len(self.providers) - index - 1,
                        },
                    )
                    continue

                attempt_span.set_attribute("ai.chain.attempt_status", "success")
                attempt_span.set_attribute(
                    "ai.chain.attempt_duration_ms",
                    round((time.monotonic() - attempt_started) * 1000, 2),
                )
                attempt_span.end()
                span.set_attribute("ai.chain.status", "success")
                span.set_attribute("ai.chain.successful_provider", alias)
                span.set_attribute("ai.chain.failover_count", index)
                if index > 0:
                    self.logger.info(
                        "Chain failover succeeded",
                        {
                            "operation": "ai_chain_failover_success",
                            "failed_providers": ",".join(failed),
                            "successful_provider": alias,
                            "total_duration_ms": round((time.monotonic() - started) * 1000, 2),
                        },
                    )
                self.usage.record_success(response.usage)
                return response

            assert last_error is not None
            self.logger.error(
                "All chain providers exhausted",
                {
                    "operation": "ai_chain_exhausted",
                    "providers_tried": len(self.providers),
                    "failed_providers": ",".join(failed),
                    "error_kind": last_error.kind.value,
                },
            )
            span.set_attribute("ai.chain.status", "exhausted")
            span.record_error(last_error)
            self.usage.record_failure(last_error.kind.value)
            raise last_error
        finally:
            span.end()


__all__ = ["ChainClient", "FAILOVER_KINDS", "should_failover"]
