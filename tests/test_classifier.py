from __future__ import annotations

import pytest

from errors import MalformedUpstreamResponse, TransportError
from fakes import ScriptedTransport
from relay import Classifier, FinalMessage, Inference, Role
from relay.cancellation import TokenSource

HISTORY = (FinalMessage(Role.USER, "I'm at chapter 3 of Dune"),)


@pytest.mark.asyncio
async def test_classify_sends_inference_request_and_parses_result() -> None:
    transport = ScriptedTransport(
        replies=[{"inference": {"mediaType": "book", "title": "Dune", "position": "chapter 3"}}]
    )

    result = await Classifier(transport).classify(HISTORY, "Sounds like the early part.", TokenSource().next())

    assert result == Inference("book", "Dune", "chapter 3")
    envelope = transport.calls[0]
    assert envelope.infer_only is True
    assert envelope.stream is False
    assert envelope.last_answer == "Sounds like the early part."
    assert envelope.messages == HISTORY


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply",
    [
        TransportError("Request failed: 500", status_code=500),
        MalformedUpstreamResponse("not json"),
        RuntimeError("unexpected"),
        {"error": "nope"},
        {"inference": "book"},
    ],
)
async def test_failures_resolve_to_unknown(reply) -> None:
    result = await Classifier(ScriptedTransport(replies=[reply])).classify(HISTORY, "", TokenSource().next())

    assert result == Inference.unknown()
    assert result.is_unknown


@pytest.mark.asyncio
async def test_superseded_token_resolves_to_unknown() -> None:
    transport = ScriptedTransport(replies=[{"inference": {"mediaType": "book"}}])
    source = TokenSource()
    token = source.next()
    source.next()

    result = await Classifier(transport).classify(HISTORY, "answer", token)

    assert result == Inference.unknown()


@pytest.mark.asyncio
async def test_unsupported_media_type_is_unknown_but_other_fields_survive() -> None:
    transport = ScriptedTransport(
        replies=[{"inference": {"mediaType": "Podcast", "title": "Serial", "position": "episode 2"}}]
    )

    result = await Classifier(transport).classify(HISTORY, "answer", TokenSource().next())

    assert result == Inference("", "Serial", "episode 2")


def test_inference_wire_format() -> None:
    inference = Inference.from_wire({"mediaType": " VideoGame ", "title": "Elden Ring", "position": None})

    assert inference == Inference("videogame", "Elden Ring", "")
    assert inference.to_wire() == {"mediaType": "videogame", "title": "Elden Ring", "position": ""}
    assert not inference.is_unknown
