"""
Pytest configuration for gomind_ai tests.

This file configures pytest with custom markers, command-line options and
shared fixtures for stubbing the HTTP transport.
"""

import os

import pytest

from gomind_ai import ClientConfig, RetryPolicy
from gomind_ai.models import ENV_PREFIXES


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-e2e",
        action="store_true",
        default=False,
        help="Run end-to-end tests with real API calls",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "e2e: mark test as end-to-end (requires real API keys, use --run-e2e to run)"
    )
    config.addinivalue_line("markers", "openai: mark test as requiring OpenAI API key")
    config.addinivalue_line("markers", "anthropic: mark test as requiring Anthropic API key")


def pytest_collection_modifyitems(config, items):
    """Skip e2e tests unless --run-e2e is passed."""
    if config.getoption("--run-e2e"):
        return

    skip_e2e = pytest.mark.skip(reason="Need --run-e2e option to run end-to-end tests")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


@pytest.fixture(autouse=True)
def clean_model_env(request, monkeypatch):
    """Drop alias overrides so the static tables are what tests see."""
    if "e2e" in request.keywords:
        return
    prefixes = tuple(ENV_PREFIXES.values())
    for key in list(os.environ):
        if key.startswith(prefixes):
            monkeypatch.delenv(key)


@pytest.fixture
def fast_config():
    """Deterministic, near-instant retry schedule."""
    return ClientConfig(
        base_url="https://api.anthropic.test/v1",
        request_timeout=5.0,
        retry=RetryPolicy(max_attempts=3, base_delay=0.01, max_delay=0.05, jitter=False),
    )


@pytest.fixture
def anthropic_body():
    """Factory for Messages API success envelopes."""

    def build(text="Hello there", model="claude-haiku-4-5-20251001", **overrides):
        body = {
            "id": "msg_01",
            "type": "message",
            "role": "assistant",
            "content": [{"type": "text", "text": text}],
            "model": model,
            "stop_reason": "end_turn",
            "stop_sequence": None,
            "usage": {"input_tokens": 12, "output_tokens": 5},
        }
        body.update(overrides)
        return body

    return build
