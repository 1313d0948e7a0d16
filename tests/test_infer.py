from __future__ import annotations

import pytest

from agent.modules.infer import _parse_json, extract_inference
from agent.prompts import infer as prompts
from fakes import FakeLLM
from relay import Inference


def test_parse_json_plain_object() -> None:
    assert _parse_json('{"mediaType": "anime", "title": "Frieren"}') == {"mediaType": "anime", "title": "Frieren"}


def test_parse_json_strips_code_fences() -> None:
    raw = '```json\n{"mediaType": "movie", "title": "Alien", "position": "minute 40"}\n```'

    assert _parse_json(raw) == {"mediaType": "movie", "title": "Alien", "position": "minute 40"}


def test_parse_json_finds_object_inside_prose() -> None:
    raw = 'Sure! Here it is: {"mediaType": "book", "title": "", "position": "early"} Hope that helps.'

    assert _parse_json(raw)["position"] == "early"


@pytest.mark.parametrize("raw", ["", "no idea", "{broken", "[1, 2, 3]"])
def test_parse_json_gives_empty_dict_on_garbage(raw: str) -> None:
    assert _parse_json(raw) == {}


@pytest.mark.asyncio
async def test_extract_inference_sends_history_answer_and_prompt() -> None:
    llm = FakeLLM(reply='{"mediaType": "book", "title": "", "position": "early"}')
    history = [
        {"role": "system", "content": "client rules"},
        {"role": "user", "content": "What happened in chapter 3?"},
    ]

    result = await extract_inference(llm, history, "It's early days.")

    assert result == Inference("book", "", "early")
    call = llm.calls[0]
    assert call["system"] == prompts.SYSTEM
    assert call["temperature"] == 0
    assert call["messages"] == [
        {"role": "user", "content": "What happened in chapter 3?"},
        {"role": "assistant", "content": "It's early days."},
        {"role": "user", "content": prompts.FINAL_USER},
    ]


@pytest.mark.asyncio
async def test_extract_inference_absorbs_provider_errors() -> None:
    llm = FakeLLM(fail_with=RuntimeError("rate limited"))

    assert await extract_inference(llm, [], "answer") == Inference.unknown()


@pytest.mark.asyncio
async def test_extract_inference_absorbs_malformed_output() -> None:
    llm = FakeLLM(reply="I think it's a book?")

    assert await extract_inference(llm, [], "answer") == Inference.unknown()
