"""
Provider factories and environment-based auto-detection.

Each factory knows how to build one provider from explicit arguments plus
the process environment. `create_client(provider="auto")` picks the
highest-priority factory whose credentials are present.

Example:
    >>> from gomind_ai import create_client
    >>> client = create_client()                      # first configured provider
    >>> client = create_client("openai.groq")         # explicit alias
    >>> client.generate("Hello", AIOptions(model="fast"))
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional

from .config import ClientConfig
from .env import load_default_env
from .exceptions import ProviderConfigurationError
from .observability import StructuredLogger, Tracer
from .providers.anthropic_provider import AnthropicProvider
from .providers.base import Provider
from .providers.openai_provider import API_KEY_ENV_VARS, OpenAIProvider
from .providers.stubs import MockProvider

ProviderBuilder = Callable[..., Provider]


@dataclass(frozen=True)
class ProviderFactory:
    """
    Recipe for one provider.

    Attributes:
        name: Provider alias used with create_client().
        description: One-line description for listings.
        priority: Higher wins during auto-detection.
        build: Called with (api_key, base_url, config, logger, tracer, environ).
        detect: Returns True when the environment holds what the provider needs.
                Factories without a detector are never auto-selected.
        credential_var: Environment variable holding the credential, or None
                        for providers that need none.
    """

    name: str
    description: str
    priority: int
    build: ProviderBuilder
    detect: Optional[Callable[[Mapping[str, str]], bool]] = None
    credential_var: Optional[str] = None

    def available(self, environ: Mapping[str, str]) -> bool:
        return self.detect is not None and self.detect(environ)

    def has_credentials(self, environ: Mapping[str, str], api_key: Optional[str] = None) -> bool:
        """True when an explicit key is given or the credential variable is set."""
        return bool(api_key) or self.credential_var is None or bool(environ.get(self.credential_var))


_registry: Dict[str, ProviderFactory] = {}
_registry_lock = threading.Lock()


def register(factory: ProviderFactory) -> None:
    """Register a factory. Raises ValueError if the name is taken."""
    with _registry_lock:
        if factory.name in _registry:
            raise ValueError(f"Provider '{factory.name}' is already registered")
        _registry[factory.name] = factory


def unregister(name: str) -> None:
    with _registry_lock:
        _registry.pop(name, None)


def get_factory(name: str) -> Optional[ProviderFactory]:
    with _registry_lock:
        return _registry.get(name)


def list_providers() -> List[str]:
    """Registered provider names, highest priority first."""
    with _registry_lock:
        factories = sorted(_registry.values(), key=lambda f: (-f.priority, f.name))
    return [factory.name for factory in factories]


def provider_info(environ: Optional[Mapping[str, str]] = None) -> List[Dict[str, object]]:
    """Describe every registered provider and whether it is configured."""
    env = os.environ if environ is None else environ
    info = []
    for name in list_providers():
        factory = get_factory(name)
        if factory is None:
            continue
        info.append(
            {
                "name": factory.name,
                "description": factory.description,
                "priority": factory.priority,
                "available": factory.available(env),
            }
        )
    return info


def detect_provider(environ: Optional[Mapping[str, str]] = None) -> str:
    """
    Return the highest-priority provider whose environment is configured.

    Raises:
        ProviderConfigurationError: No registered provider is configured.
    """
    env = os.environ if environ is None else environ
    for name in list_providers():
        factory = get_factory(name)
        if factory is not None and factory.available(env):
            return name
    raise ProviderConfigurationError(
        "auto", "credentials for any provider", env_var="ANTHROPIC_API_KEY"
    )


def create_client(
    provider: str = "auto",
    *,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    config: Optional[ClientConfig] = None,
    logger: Optional[StructuredLogger] = None,
    tracer: Optional[Tracer] = None,
    environ: Optional[Mapping[str, str]] = None,
    load_env: bool = True,
) -> Provider:
    """
    Build a provider client.

    Args:
        provider: Registered name, or "auto" to detect from the environment.
        api_key: Credential; falls back to the provider's environment variable.
        base_url: API root; falls back to `<SERVICE>_BASE_URL`, then the default.
        config: Client configuration shared by every provider.
        logger: Structured logger.
        tracer: Tracer for spans.
        environ: Environment to read instead of os.environ.
        load_env: Load a .env file into os.environ first (ignored when
                  `environ` is given).

    Raises:
        ValueError: Unknown provider name.
        ProviderConfigurationError: "auto" found no configured provider.
    """
    if environ is None:
        if load_env:
            load_default_env()
        environ = os.environ

    if provider == "auto":
        provider = detect_provider(environ)
    factory = get_factory(provider)
    if factory is None:
        raise ValueError(
            f"Unknown provider '{provider}'. Registered providers: {', '.join(list_providers())}"
        )
    return factory.build(
        api_key=api_key,
        base_url=base_url,
        config=config,
        logger=logger,
        tracer=tracer,
        environ=environ,
    )


# =============================================================================
# Built-in factories
# =============================================================================


def _base_url_var(alias: str) -> str:
    service = alias.split(".", 1)[-1]
    return f"{service.upper()}_BASE_URL"


def _build_anthropic(*, api_key, base_url, config, logger, tracer, environ) -> Provider:
    return AnthropicProvider(
        api_key or environ.get("ANTHROPIC_API_KEY", ""),
        base_url or environ.get("ANTHROPIC_BASE_URL") or None,
        config=config,
        logger=logger,
        tracer=tracer,
    )


def _openai_builder(alias: str) -> ProviderBuilder:
    key_var = API_KEY_ENV_VARS.get(alias)

    def build(*, api_key, base_url, config, logger, tracer, environ) -> Provider:
        return OpenAIProvider(
            api_key or (environ.get(key_var, "") if key_var else ""),
            base_url or environ.get(_base_url_var(alias)) or None,
            provider_alias=alias,
            config=config,
            logger=logger,
            tracer=tracer,
        )

    return build


def _has(var: str) -> Callable[[Mapping[str, str]], bool]:
    return lambda environ: bool(environ.get(var))


def _build_mock(*, api_key, base_url, config, logger, tracer, environ) -> Provider:
    return MockProvider(config=config, logger=logger, tracer=tracer)


def _register_builtin() -> None:
    register(
        ProviderFactory(
            name="openai",
            description="OpenAI chat completions",
            priority=100,
            build=_openai_builder("openai"),
            detect=_has("OPENAI_API_KEY"),
            credential_var="OPENAI_API_KEY",
        )
    )
    register(
        ProviderFactory(
            name="anthropic",
            description="Anthropic Messages API",
            priority=90,
            build=_build_anthropic,
            detect=_has("ANTHROPIC_API_KEY"),
            credential_var="ANTHROPIC_API_KEY",
        )
    )
    compatible = [
        ("openai.deepseek", "DeepSeek (OpenAI-compatible)", 70),
        ("openai.groq", "Groq (OpenAI-compatible)", 70),
        ("openai.xai", "xAI Grok (OpenAI-compatible)", 60),
        ("openai.qwen", "Alibaba Qwen (OpenAI-compatible)", 60),
        ("openai.together", "Together AI (OpenAI-compatible)", 60),
    ]
    for alias, description, priority in compatible:
        register(
            ProviderFactory(
                name=alias,
                description=description,
                priority=priority,
                build=_openai_builder(alias),
                detect=_has(API_KEY_ENV_VARS[alias]),
                credential_var=API_KEY_ENV_VARS[alias],
            )
        )
    register(
        ProviderFactory(
            name="openai.ollama",
            description="Local Ollama server (OpenAI-compatible)",
            priority=30,
            build=_openai_builder("openai.ollama"),
            detect=_has("OLLAMA_BASE_URL"),
        )
    )
    register(
        ProviderFactory(
            name="mock",
            description="Scripted offline provider for tests",
            priority=1,
            build=_build_mock,
        )
    )


_register_builtin()


__all__ = [
    "ProviderFactory",
    "register",
    "unregister",
    "get_factory",
    "list_providers",
    "provider_info",
    "detect_provider",
    "create_client",
]
