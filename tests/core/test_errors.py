"""
Tests for the error taxonomy.

Tests cover:
- ErrorKind per exception class
- Retryability flags
- Message formatting (provider, phase, status, attempts)
- ProviderConfigurationError fix-it instructions
"""

import copy

import pytest

from gomind_ai import (
    DecodeError,
    ErrorKind,
    GomindAIError,
    HTTPClientError,
    HTTPServerError,
    Phase,
    ProviderConfigurationError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
    RequestCanceledError,
    SemanticError,
    TransportError,
    UnauthorizedError,
)


class TestErrorKinds:
    @pytest.mark.parametrize(
        "cls,kind,retryable",
        [
            (TransportError, ErrorKind.TRANSPORT, True),
            (ProviderTimeoutError, ErrorKind.TIMEOUT, False),
            (RequestCanceledError, ErrorKind.CANCELED, False),
            (HTTPClientError, ErrorKind.HTTP_CLIENT, False),
            (UnauthorizedError, ErrorKind.UNAUTHORIZED, False),
            (RateLimitError, ErrorKind.RATE_LIMITED, True),
            (HTTPServerError, ErrorKind.HTTP_SERVER, True),
            (DecodeError, ErrorKind.DECODE, False),
            (SemanticError, ErrorKind.SEMANTIC, False),
        ],
    )
    def test_kind_and_retryability(self, cls, kind, retryable):
        error = cls("boom", provider="anthropic")
        assert error.kind == kind
        assert error.retryable is retryable
        assert isinstance(error, ProviderError)
        assert isinstance(error, GomindAIError)

    def test_config_error_kind(self):
        error = ProviderConfigurationError("anthropic", "API key", env_var="ANTHROPIC_API_KEY")
        assert error.kind == ErrorKind.CONFIG
        assert error.retryable is False
        assert error.phase == "request_preparation"

    def test_specific_4xx_classes_are_client_errors(self):
        assert issubclass(UnauthorizedError, HTTPClientError)
        assert issubclass(RateLimitError, HTTPClientError)


class TestErrorMessages:
    def test_message_names_provider_phase_and_status(self):
        error = HTTPServerError(
            "overloaded", provider="anthropic", phase=Phase.API_RESPONSE, status_code=529
        )
        text = str(error)
        assert "anthropic" in text
        assert "api_response" in text
        assert "529" in text
        assert "overloaded" in text

    def test_phase_enum_is_stored_as_string(self):
        error = DecodeError("bad", phase=Phase.RESPONSE_PARSE)
        assert error.phase == "response_parse"

    def test_attempts_shown_after_retries(self):
        error = HTTPServerError("down", provider="anthropic", status_code=503)
        assert "attempts" not in str(error)
        error.attempts = 3
        assert "after 3 attempts" in str(error)

    def test_error_type_included(self):
        error = HTTPClientError(
            "max_tokens too large", provider="anthropic", error_type="invalid_request_error"
        )
        assert "invalid_request_error" in str(error)

    def test_rate_limit_carries_retry_after(self):
        error = RateLimitError("slow down", retry_after=2.0)
        assert error.retry_after == 2.0

    def test_config_error_has_fix_instructions(self):
        error = ProviderConfigurationError("anthropic", "API key", env_var="ANTHROPIC_API_KEY")
        text = str(error)
        assert "Provider Configuration Error" in text
        assert "export ANTHROPIC_API_KEY" in text
        assert "request_preparation" in text

    def test_cause_is_preserved(self):
        original = ConnectionResetError("reset by peer")
        try:
            try:
                raise original
            except ConnectionResetError as exc:
                raise TransportError("send failed", provider="anthropic") from exc
        except TransportError as error:
            assert error.__cause__ is original


class TestCopy:
    def test_copy_keeps_fields(self):
        error = RateLimitError("slow down", provider="openai", status_code=429, retry_after=2.0)
        clone = copy.copy(error)
        assert clone is not error
        assert type(clone) is RateLimitError
        assert (clone.provider, clone.status_code, clone.retry_after) == ("openai", 429, 2.0)
        assert str(clone) == str(error)

    def test_copy_of_config_error(self):
        error = ProviderConfigurationError("anthropic", "API key", env_var="ANTHROPIC_API_KEY")
        clone = copy.copy(error)
        assert clone.env_var == "ANTHROPIC_API_KEY"
        assert "export ANTHROPIC_API_KEY" in str(clone)

    def test_copy_has_no_traceback(self):
        error = TransportError("reset")
        try:
            raise error
        except TransportError:
            pass
        assert error.__traceback__ is not None
        assert copy.copy(error).__traceback__ is None
