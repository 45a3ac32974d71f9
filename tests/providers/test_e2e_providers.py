"""
End-to-End tests using real provider APIs.

These tests require real API keys and make actual API calls.
They are skipped by default and must be run explicitly:

    pytest tests/providers/test_e2e_providers.py -v --run-e2e

Required environment variables:
    - ANTHROPIC_API_KEY: For Anthropic tests
    - OPENAI_API_KEY: For OpenAI tests
"""

from __future__ import annotations

import os

import pytest

from gomind_ai import AIOptions, AnthropicProvider, OpenAIProvider, RequestContext, UnauthorizedError

# =============================================================================
# Anthropic
# =============================================================================


@pytest.mark.e2e
@pytest.mark.anthropic
class TestAnthropicE2E:
    @pytest.fixture(autouse=True)
    def require_key(self):
        if not os.getenv("ANTHROPIC_API_KEY"):
            pytest.skip("ANTHROPIC_API_KEY not set")

    def test_fast_alias(self):
        with AnthropicProvider(os.environ["ANTHROPIC_API_KEY"]) as provider:
            response = provider.generate(
                "Reply with the single word: pong",
                AIOptions(model="fast", max_tokens=20),
                ctx=RequestContext(timeout=60),
            )
        assert "pong" in response.content.lower()
        assert response.usage.prompt_tokens > 0
        assert response.usage.completion_tokens > 0

    def test_bad_key_is_unauthorized(self):
        with pytest.raises(UnauthorizedError):
            AnthropicProvider("sk-ant-invalid").generate("hi", ctx=RequestContext(timeout=30))


# =============================================================================
# OpenAI
# =============================================================================


@pytest.mark.e2e
@pytest.mark.openai
class TestOpenAIE2E:
    @pytest.fixture(autouse=True)
    def require_key(self):
        if not os.getenv("OPENAI_API_KEY"):
            pytest.skip("OPENAI_API_KEY not set")

    def test_fast_alias(self):
        with OpenAIProvider(os.environ["OPENAI_API_KEY"]) as provider:
            response = provider.generate(
                "Reply with the single word: pong",
                AIOptions(model="fast", max_tokens=20),
                ctx=RequestContext(timeout=60),
            )
        assert "pong" in response.content.lower()
        assert response.usage.total_tokens > 0
