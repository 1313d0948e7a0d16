from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from agent.llm import get_llm_client
from agent.prompts import chat as chat_prompts
from agent.prompts import infer as infer_prompts
from api.routes import app
from errors import ConfigurationError
from fakes import FakeLLM

INFERENCE_JSON = '{"mediaType": "book", "title": "Dune", "position": "chapter 3"}'


def _answer(system: str, messages: list[dict]) -> str:
    return INFERENCE_JSON if system == infer_prompts.SYSTEM else "It's early days."


@pytest.fixture
def llm() -> Iterator[FakeLLM]:
    fake = FakeLLM(reply=_answer, deltas=["It", "'s early", " days."])
    app.dependency_overrides[get_llm_client] = lambda: fake
    yield fake
    app.dependency_overrides.clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def _body(**kwargs) -> dict:
    body = {
        "messages": [
            {"role": "system", "content": "client supplied rules"},
            {"role": "user", "content": "What happened in chapter 3?"},
        ]
    }
    body.update(kwargs)
    return body


def test_stream_returns_plain_text(client: TestClient, llm: FakeLLM) -> None:
    response = client.post("/api/chat", json=_body(stream=True))

    assert response.status_code == 200
    assert response.text == "It's early days."
    assert response.headers["content-type"].startswith("text/plain")
    assert response.headers["cache-control"] == "no-cache"
    call = llm.calls[0]
    assert call["system"] == chat_prompts.SAFE
    assert call["messages"] == [{"role": "user", "content": "What happened in chapter 3?"}]


def test_danger_mode_switches_instructions(client: TestClient, llm: FakeLLM) -> None:
    client.post("/api/chat", json=_body(stream=True, dangerMode=True))

    assert llm.calls[0]["system"] == chat_prompts.DANGER


def test_stream_error_ends_stream_early(client: TestClient, llm: FakeLLM) -> None:
    llm.stream_fail_after = 1

    response = client.post("/api/chat", json=_body(stream=True))

    assert response.status_code == 200
    assert response.text == "It"


def test_stream_failure_before_first_delta_is_500(client: TestClient, llm: FakeLLM) -> None:
    llm.stream_fail_after = 0

    response = client.post("/api/chat", json=_body(stream=True))

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate response"}


def test_stream_with_no_deltas_is_empty_body(client: TestClient, llm: FakeLLM) -> None:
    llm.deltas = []

    response = client.post("/api/chat", json=_body(stream=True))

    assert response.status_code == 200
    assert response.text == ""


def test_infer_only_returns_inference(client: TestClient, llm: FakeLLM) -> None:
    response = client.post("/api/chat", json=_body(inferOnly=True, lastAnswer="It's early days."))

    assert response.status_code == 200
    assert response.json() == {"inference": {"mediaType": "book", "title": "Dune", "position": "chapter 3"}}
    assert llm.calls[0]["messages"][-2] == {"role": "assistant", "content": "It's early days."}


def test_infer_only_never_fails(client: TestClient, llm: FakeLLM) -> None:
    llm.fail_with = RuntimeError("provider down")

    response = client.post("/api/chat", json=_body(inferOnly=True, lastAnswer="x"))

    assert response.status_code == 200
    assert response.json() == {"inference": {"mediaType": "", "title": "", "position": ""}}


def test_non_stream_returns_message_and_inference(client: TestClient, llm: FakeLLM) -> None:
    response = client.post("/api/chat", json=_body())

    assert response.status_code == 200
    assert response.json() == {
        "message": "It's early days.",
        "inference": {"mediaType": "book", "title": "Dune", "position": "chapter 3"},
    }


def test_empty_model_reply_is_502(client: TestClient, llm: FakeLLM) -> None:
    llm.reply = ""

    response = client.post("/api/chat", json=_body())

    assert response.status_code == 502
    assert response.json() == {"error": "Empty response from model"}


def test_provider_failure_is_500(client: TestClient, llm: FakeLLM) -> None:
    llm.fail_with = RuntimeError("boom")

    response = client.post("/api/chat", json=_body())

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate response"}


def test_missing_credentials_is_500_with_reason(client: TestClient) -> None:
    def missing_key():
        raise ConfigurationError("Missing OPENAI_API_KEY on server")

    app.dependency_overrides[get_llm_client] = missing_key
    try:
        response = client.post("/api/chat", json=_body(stream=True))
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"error": "Missing OPENAI_API_KEY on server"}


def test_healthz(client: TestClient) -> None:
    assert client.get("/healthz").json() == {"status": "ok"}
