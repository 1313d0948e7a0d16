import pytest

from agent.llm.anthropic_client import AnthropicClient, _merge_turns
from agent.llm.factory import get_llm_client, model_name
from agent.llm.openai_client import OpenAIClient
from config import settings
from errors import ConfigurationError


def test_openai_client_requires_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "llm_provider", "openai")
    monkeypatch.setattr(settings, "openai_api_key", "")

    with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
        get_llm_client()


def test_openai_client_built_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "llm_provider", "OpenAI")
    monkeypatch.setattr(settings, "openai_api_key", "sk-test")
    monkeypatch.setattr(settings, "openai_model", "gpt-test")

    assert isinstance(get_llm_client(), OpenAIClient)
    assert model_name() == "gpt-test"


def test_anthropic_client_built_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "llm_provider", "anthropic")
    monkeypatch.setattr(settings, "anthropic_api_key", "sk-ant-test")
    monkeypatch.setattr(settings, "anthropic_model", "claude-test")

    assert isinstance(get_llm_client(), AnthropicClient)
    assert model_name() == "claude-test"


def test_unknown_provider(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "llm_provider", "carrier-pigeon")

    with pytest.raises(ConfigurationError, match="carrier-pigeon"):
        get_llm_client()


def test_merge_turns_joins_consecutive_roles() -> None:
    merged = _merge_turns([
        {"role": "user", "content": "a"},
        {"role": "user", "content": "b"},
        {"role": "assistant", "content": "c"},
    ])

    assert merged == [
        {"role": "user", "content": "a\n\nb"},
        {"role": "assistant", "content": "c"},
    ]
