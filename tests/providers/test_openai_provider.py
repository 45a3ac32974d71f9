"""Tests for the OpenAI-compatible chat-completions adapter."""

import json

import pytest
import responses

from gomind_ai import (
    AIOptions,
    ClientConfig,
    DecodeError,
    HTTPServerError,
    ProviderConfigurationError,
    RateLimitError,
    RetryPolicy,
    SemanticError,
)
from gomind_ai.providers import OpenAIProvider
from gomind_ai.providers.openai_provider import (
    DEFAULT_BASE_URLS,
    is_reasoning_model,
    parse_error_envelope,
)

FAST_RETRY = RetryPolicy(max_attempts=3, base_delay=0.01, max_delay=0.05, jitter=False)


def completion(content="Hi!", model="gpt-4o-mini", **overrides):
    body = {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "model": model,
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}
        ],
        "usage": {"prompt_tokens": 9, "completion_tokens": 3, "total_tokens": 12},
    }
    body.update(overrides)
    return body


@pytest.fixture
def config():
    return ClientConfig(retry=FAST_RETRY)


class TestConstruction:
    def test_unknown_alias_rejected(self):
        with pytest.raises(ValueError, match="Unknown provider alias"):
            OpenAIProvider("k", provider_alias="openai.nope")

    def test_name_is_alias(self):
        assert OpenAIProvider("k", provider_alias="openai.groq").name == "openai.groq"

    def test_default_base_url_per_alias(self):
        provider = OpenAIProvider("k", provider_alias="openai.deepseek")
        assert provider.base_url == DEFAULT_BASE_URLS["openai.deepseek"]

    def test_aliases_property(self):
        assert OpenAIProvider("k").aliases["smart"] == "gpt-4o"


class TestGenerate:
    @responses.activate
    def test_success(self, config):
        responses.add(responses.POST, "https://api.openai.com/v1/chat/completions", json=completion())
        response = OpenAIProvider("sk-test", config=config).generate("hello", AIOptions(model="fast"))
        assert response.content == "Hi!"
        assert response.provider == "openai"
        assert response.stop_reason == "stop"
        assert response.usage.total_tokens == 12

        request = responses.calls[0].request
        assert request.headers["Authorization"] == "Bearer sk-test"
        body = json.loads(request.body)
        assert body == {
            "model": "gpt-4o-mini",
            "messages": [{"role": "user", "content": "hello"}],
            "max_tokens": 1000,
        }

    @responses.activate
    def test_system_prompt_and_temperature(self, config):
        responses.add(responses.POST, "https://api.openai.com/v1/chat/completions", json=completion())
        OpenAIProvider("sk", config=config).generate(
            "hello", AIOptions(model="gpt-4", temperature=0.3, system_prompt="Be terse")
        )
        body = json.loads(responses.calls[0].request.body)
        assert body["messages"][0] == {"role": "system", "content": "Be terse"}
        assert body["temperature"] == 0.3

    @responses.activate
    def test_groq_alias_resolution(self, config):
        responses.add(
            responses.POST,
            "https://api.groq.com/openai/v1/chat/completions",
            json=completion(model="llama-3.1-8b-instant"),
        )
        provider = OpenAIProvider("gsk", provider_alias="openai.groq", config=config)
        assert provider.generate("hi", AIOptions(model="fast")).model == "llama-3.1-8b-instant"
        assert json.loads(responses.calls[0].request.body)["model"] == "llama-3.1-8b-instant"

    @responses.activate
    def test_ollama_needs_no_key(self, config):
        responses.add(responses.POST, "http://localhost:11434/v1/chat/completions", json=completion(model="llama3.2"))
        provider = OpenAIProvider(provider_alias="openai.ollama", config=config)
        assert provider.generate("hi").content == "Hi!"
        assert "Authorization" not in responses.calls[0].request.headers

    def test_missing_key_is_config_error(self, config):
        with responses.RequestsMock() as mock:
            with pytest.raises(ProviderConfigurationError) as exc_info:
                OpenAIProvider(provider_alias="openai.xai", config=config).generate("hi")
            assert len(mock.calls) == 0
        assert "XAI_API_KEY" in str(exc_info.value)

    @responses.activate
    def test_empty_choices_is_semantic_error(self, config):
        responses.add(responses.POST, "https://api.openai.com/v1/chat/completions", json=completion(choices=[]))
        with pytest.raises(SemanticError):
            OpenAIProvider("sk", config=config).generate("hi")

    @responses.activate
    def test_null_content_is_semantic_error(self, config):
        responses.add(responses.POST, "https://api.openai.com/v1/chat/completions", json=completion(content=None))
        with pytest.raises(SemanticError):
            OpenAIProvider("sk", config=config).generate("hi")

    @responses.activate
    def test_missing_choices_is_decode_error(self, config):
        responses.add(responses.POST, "https://api.openai.com/v1/chat/completions", json={"id": "x"})
        with pytest.raises(DecodeError):
            OpenAIProvider("sk", config=config).generate("hi")

    @responses.activate
    def test_server_error_retried_then_succeeds(self, config):
        url = "https://api.openai.com/v1/chat/completions"
        responses.add(responses.POST, url, status=502)
        responses.add(responses.POST, url, json=completion())
        assert OpenAIProvider("sk", config=config).generate("hi").content == "Hi!"
        assert len(responses.calls) == 2

    @responses.activate
    def test_rate_limit_message_from_envelope(self, config):
        url = "https://api.openai.com/v1/chat/completions"
        responses.add(
            responses.POST,
            url,
            status=429,
            json={"error": {"message": "Rate limit reached", "type": "requests", "code": "rate_limit_exceeded"}},
        )
        with pytest.raises(RateLimitError) as exc_info:
            OpenAIProvider("sk", config=config).generate("hi")
        assert exc_info.value.message == "Rate limit reached"
        assert exc_info.value.error_type == "requests"
        assert len(responses.calls) == 3

    @responses.activate
    def test_server_error_exhausted(self, config):
        responses.add(responses.POST, "https://api.openai.com/v1/chat/completions", status=500)
        with pytest.raises(HTTPServerError) as exc_info:
            OpenAIProvider("sk", config=config).generate("hi")
        assert exc_info.value.attempts == 3


class TestReasoningModels:
    @pytest.mark.parametrize("model", ["gpt-5", "gpt-5-mini", "o1", "o3-mini", "o4-mini", "O3-MINI"])
    def test_detected(self, model):
        assert is_reasoning_model(model)

    @pytest.mark.parametrize("model", ["gpt-4o", "gpt-4o-mini", "gpt-4", "llama-3.1-8b-instant", ""])
    def test_not_detected(self, model):
        assert not is_reasoning_model(model)

    @responses.activate
    def test_reasoning_payload(self, config):
        responses.add(responses.POST, "https://api.openai.com/v1/chat/completions", json=completion(model="o3-mini"))
        OpenAIProvider("sk", config=config).generate("hi", AIOptions(model="o3-mini", temperature=0.7))
        body = json.loads(responses.calls[0].request.body)
        assert body["max_completion_tokens"] == 5000
        assert "max_tokens" not in body
        assert "temperature" not in body

    @responses.activate
    def test_custom_multiplier(self):
        responses.add(responses.POST, "https://api.openai.com/v1/chat/completions", json=completion(model="gpt-5"))
        config = ClientConfig(retry=FAST_RETRY, reasoning_token_multiplier=3)
        OpenAIProvider("sk", config=config).generate("hi", AIOptions(model="gpt-5", max_tokens=200))
        assert json.loads(responses.calls[0].request.body)["max_completion_tokens"] == 600

    @responses.activate
    def test_non_positive_multiplier_uses_default(self):
        responses.add(responses.POST, "https://api.openai.com/v1/chat/completions", json=completion(model="o1"))
        config = ClientConfig(retry=FAST_RETRY, reasoning_token_multiplier=0)
        OpenAIProvider("sk", config=config).generate("hi", AIOptions(model="o1", max_tokens=100))
        assert json.loads(responses.calls[0].request.body)["max_completion_tokens"] == 500

    @responses.activate
    def test_standard_model_keeps_max_tokens(self, config):
        responses.add(responses.POST, "https://api.openai.com/v1/chat/completions", json=completion())
        OpenAIProvider("sk", config=config).generate("hi", AIOptions(model="gpt-4o", temperature=0.7))
        body = json.loads(responses.calls[0].request.body)
        assert body["max_tokens"] == 1000
        assert body["temperature"] == 0.7
        assert "max_completion_tokens" not in body


class TestErrorEnvelope:
    def test_type_falls_back_to_code(self):
        body = b'{"error": {"message": "nope", "code": "invalid_api_key"}}'
        assert parse_error_envelope(body) == ("invalid_api_key", "nope")

    def test_string_error(self):
        assert parse_error_envelope(b'{"error": "model not found"}') == (None, "model not found")

    def test_not_json(self):
        assert parse_error_envelope(b"Bad Gateway") == (None, None)
