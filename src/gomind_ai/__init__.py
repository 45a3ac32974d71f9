"""Public exports for the gomind_ai package."""

from .chain import ChainClient
from .config import ClientConfig, RetryPolicy
from .context import RequestContext
from .exceptions import (
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
from .models import MODEL_ALIASES, resolve_model
from .observability import NoOpTracer, RecordingTracer, StructuredLogger
from .pricing import PRICING, calculate_cost
from .providers.anthropic_provider import AnthropicProvider
from .providers.base import BaseClient, Provider
from .providers.openai_provider import OpenAIProvider
from .providers.stubs import MockProvider
from .registry import create_client, detect_provider, list_providers
from .types import AIOptions, AIResponse, Role
from .usage import TokenUsage, UsageTracker

__all__ = [
    # Types
    "AIOptions",
    "AIResponse",
    "Role",
    "TokenUsage",
    "UsageTracker",
    # Configuration
    "ClientConfig",
    "RetryPolicy",
    "RequestContext",
    # Providers
    "Provider",
    "BaseClient",
    "AnthropicProvider",
    "OpenAIProvider",
    "MockProvider",
    "ChainClient",
    "create_client",
    "detect_provider",
    "list_providers",
    # Models
    "MODEL_ALIASES",
    "resolve_model",
    "PRICING",
    "calculate_cost",
    # Observability
    "StructuredLogger",
    "NoOpTracer",
    "RecordingTracer",
    # Exceptions
    "GomindAIError",
    "ErrorKind",
    "Phase",
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
