"""
Typed error taxonomy for provider calls.

Every failure a caller can see is a ProviderError subclass whose `kind` is one
member of the closed ErrorKind enumeration. Each error records the lifecycle
phase it happened in, the upstream HTTP status when there was one, and the
originating exception as `__cause__`.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Closed classification of request failures."""

    CONFIG = "config_error"
    TRANSPORT = "transport_error"
    TIMEOUT = "timeout"
    HTTP_CLIENT = "http_client_error"
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    HTTP_SERVER = "http_server_error"
    DECODE = "decode_error"
    SEMANTIC = "semantic_error"
    CANCELED = "canceled"


class Phase(str, Enum):
    """Request lifecycle stage reported in error logs."""

    REQUEST_PREPARATION = "request_preparation"
    REQUEST_CREATION = "request_creation"
    REQUEST_EXECUTION = "request_execution"
    RESPONSE_READ = "response_read"
    API_RESPONSE = "api_response"
    RESPONSE_PARSE = "response_parse"
    RESPONSE_VALIDATION = "response_validation"


class GomindAIError(Exception):
    """Base exception for all gomind_ai errors."""

    pass


class ProviderError(GomindAIError):
    """
    Raised when a provider call cannot produce a response.

    Attributes:
        kind: ErrorKind of this failure (fixed per subclass).
        retryable: Whether the retry loop may try again after this failure.
        provider: Provider name the call was made against.
        phase: Lifecycle phase where the failure happened.
        status_code: Upstream HTTP status, when one was received.
        error_type: Error type from the provider's error envelope, if any.
        body: Raw response body when no envelope could be parsed.
        attempts: Number of HTTP attempts made before giving up.
        retry_after: Provider retry hint in seconds, if one was supplied.
    """

    kind: ErrorKind = ErrorKind.TRANSPORT
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        provider: str = "",
        phase: str = "",
        status_code: Optional[int] = None,
        error_type: Optional[str] = None,
        body: Optional[str] = None,
        attempts: int = 1,
        retry_after: Optional[float] = None,
    ):
        self.message = message
        self.provider = provider
        self.phase = phase.value if isinstance(phase, Phase) else phase
        self.status_code = status_code
        self.error_type = error_type
        self.body = body
        self.attempts = attempts
        self.retry_after = retry_after
        super().__init__(message)

    def __copy__(self) -> "ProviderError":
        clone = self.__class__.__new__(self.__class__)
        clone.__dict__.update(self.__dict__)
        clone.args = self.args
        return clone

    def __str__(self) -> str:
        parts = [f"{self.provider or 'provider'} API error"]
        if self.phase:
            parts.append(f"[{self.phase}]")
        if self.status_code is not None:
            parts.append(f"(status {self.status_code})")
        text = " ".join(parts) + f": {self.message}"
        if self.error_type:
            text += f" ({self.error_type})"
        if self.attempts > 1:
            text += f" after {self.attempts} attempts"
        return text


class ProviderConfigurationError(ProviderError):
    """Raised when provider configuration is incorrect (e.g. missing credential)."""

    kind = ErrorKind.CONFIG

    def __init__(
        self,
        provider_name: str,
        missing_config: str,
        env_var: str = "",
        phase: str = Phase.REQUEST_PREPARATION,
    ):
        self.provider_name = provider_name
        self.missing_config = missing_config
        self.env_var = env_var
        super().__init__(f"{missing_config} not configured", provider=provider_name, phase=phase)

    def __str__(self) -> str:
        message = f"\n{'='*60}\n"
        message += f"❌ Provider Configuration Error: '{self.provider_name}'\n"
        message += f"{'='*60}\n\n"
        message += f"Missing: {self.missing_config}\n"
        message += f"Phase: {self.phase}\n"
        if self.env_var:
            message += "\n💡 How to fix:\n"
            message += "  1. Set the environment variable:\n"
            message += f"     export {self.env_var}='your-api-key'\n"
            message += "  2. Or pass it directly:\n"
            message += "     create_client(provider=..., api_key='your-api-key')\n"
        message += f"\n{'='*60}\n"
        return message


class TransportError(ProviderError):
    """Network failure: DNS, connect, reset, per-attempt read timeout."""

    kind = ErrorKind.TRANSPORT
    retryable = True


class ProviderTimeoutError(ProviderError):
    """The caller's deadline elapsed."""

    kind = ErrorKind.TIMEOUT


class RequestCanceledError(ProviderError):
    """The caller cancelled the request."""

    kind = ErrorKind.CANCELED


class HTTPClientError(ProviderError):
    """4xx response not covered by a more specific class."""

    kind = ErrorKind.HTTP_CLIENT


class UnauthorizedError(HTTPClientError):
    """401 or 403: the credential was rejected."""

    kind = ErrorKind.UNAUTHORIZED


class RateLimitError(HTTPClientError):
    """429 Too Many Requests; may carry a retry-after hint."""

    kind = ErrorKind.RATE_LIMITED
    retryable = True


class HTTPServerError(ProviderError):
    """5xx response."""

    kind = ErrorKind.HTTP_SERVER
    retryable = True


class DecodeError(ProviderError):
    """Successful status with a body that is not the expected JSON envelope."""

    kind = ErrorKind.DECODE


class SemanticError(ProviderError):
    """Well-formed response without any usable text content."""

    kind = ErrorKind.SEMANTIC


__all__ = [
    "ErrorKind",
    "Phase",
    "GomindAIError",
    "ProviderError",
    "ProviderConfigurationError",
    "TransportError",
    "ProviderTimeoutError",
    "RequestCanceledError",
    "HTTPClientError",
    "UnauthorizedError",
    "RateLimitError",
    "HTTPServerError",
    "DecodeError",
    "SemanticError",
]
