"""Tests for the gomind-ai command line."""

import json

import pytest
import responses

from gomind_ai.cli import build_parser, main


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for var in ["OPENAI_API_KEY", "ANTHROPIC_API_KEY", "ANTHROPIC_BASE_URL"]:
        monkeypatch.delenv(var, raising=False)


def test_providers_lists_registry(capsys):
    assert main(["providers"]) == 0
    out = capsys.readouterr().out
    assert "anthropic" in out
    assert "openai.groq" in out


def test_resolve(capsys):
    assert main(["resolve", "--provider", "anthropic", "fast"]) == 0
    assert capsys.readouterr().out.strip() == "claude-haiku-4-5-20251001"


def test_resolve_with_override(capsys, monkeypatch):
    monkeypatch.setenv("GOMIND_ANTHROPIC_MODEL_FAST", "claude-custom")
    main(["resolve", "fast"])
    assert capsys.readouterr().out.strip() == "claude-custom"


def test_generate_with_mock(capsys):
    assert main(["generate", "--provider", "mock", "hello"]) == 0
    assert capsys.readouterr().out.strip() == "Mock response"


def test_generate_json(capsys):
    main(["generate", "--provider", "mock", "--model", "smart", "--json", "hello"])
    data = json.loads(capsys.readouterr().out)
    assert data["content"] == "Mock response"
    assert data["model"] == "smart"


@responses.activate
def test_generate_against_anthropic(capsys, monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")
    responses.add(
        responses.POST,
        "https://api.anthropic.test/v1/messages",
        json={
            "id": "msg_1",
            "content": [{"type": "text", "text": "Hi from Claude"}],
            "model": "claude-haiku-4-5-20251001",
            "usage": {"input_tokens": 3, "output_tokens": 4},
        },
    )
    code = main(
        [
            "generate",
            "--provider",
            "anthropic",
            "--base-url",
            "https://api.anthropic.test/v1",
            "--model",
            "fast",
            "--system",
            "Be brief",
            "hello",
        ]
    )
    assert code == 0
    assert capsys.readouterr().out.strip() == "Hi from Claude"
    body = json.loads(responses.calls[0].request.body)
    assert body["system"] == "Be brief"


def test_missing_credentials_exit_code(capsys):
    assert main(["generate", "--provider", "anthropic", "hello"]) == 1
    assert "ANTHROPIC_API_KEY" in capsys.readouterr().err


def test_unknown_provider_exit_code(capsys):
    assert main(["generate", "--provider", "nope", "hello"]) == 1
    assert "Unknown provider" in capsys.readouterr().err


def test_invalid_temperature_exit_code(capsys):
    assert main(["generate", "--provider", "mock", "--temperature", "3", "hello"]) == 1


def test_parser_defaults():
    args = build_parser().parse_args(["generate", "hi"])
    assert args.provider == "auto"
    assert args.retries == 3
    assert args.request_timeout == 30.0


def test_generate_with_chain_skips_unconfigured(capsys):
    assert main(["generate", "--provider", "anthropic,mock", "hello"]) == 0
    assert capsys.readouterr().out.strip() == "Mock response"


def test_chain_with_unknown_provider_exit_code(capsys):
    assert main(["generate", "--provider", "mock,nope", "hello"]) == 1
    assert "Unknown provider 'nope'" in capsys.readouterr().err
