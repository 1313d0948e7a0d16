import logging
from typing import AsyncIterator

from agent.llm.base import LLMClient, LLMResponse
from agent.prompts import chat as prompts

logger = logging.getLogger(__name__)

_CHAT_ROLES = ("user", "assistant")


def conversation_turns(messages: list[dict]) -> list[dict]:
    """Keep user/assistant turns only.

    Incoming system messages are dropped so the policy prompt is always ours.
    """
    turns = []
    for m in messages:
        if not isinstance(m, dict) or m.get("role") not in _CHAT_ROLES:
            continue
        turns.append({"role": m["role"], "content": str(m.get("content") or "")})
    return turns


async def reply(
    messages: list[dict],
    llm: LLMClient,
    danger_mode: bool = False,
    max_tokens: int = 1024,
    temperature: float = 0.4,
) -> str:
    response: LLMResponse = await llm.chat(
        system=prompts.instructions(danger_mode),
        messages=conversation_turns(messages),
        max_tokens=max_tokens,
        temperature=temperature,
    )
    return response.content.strip()


async def stream_reply(
    messages: list[dict],
    llm: LLMClient,
    danger_mode: bool = False,
    max_tokens: int = 1024,
    temperature: float = 0.4,
) -> AsyncIterator[bytes]:
    """Start the reply and return it as a stream of UTF-8 bytes.

    Waits for the first delta, so provider errors raised before it reach the
    caller. A provider error after that ends the stream early; the client
    sees a shorter reply, not a failure.
    """
    deltas = llm.stream_chat(
        system=prompts.instructions(danger_mode),
        messages=conversation_turns(messages),
        max_tokens=max_tokens,
        temperature=temperature,
    )
    try:
        first = await deltas.__anext__()
    except StopAsyncIteration:
        first = ""
    return _encode_rest(first, deltas)


async def _encode_rest(first: str, deltas: AsyncIterator[str]) -> AsyncIterator[bytes]:
    if first:
        yield first.encode("utf-8")
    try:
        async for delta in deltas:
            yield delta.encode("utf-8")
    except Exception:
        logger.exception("Streaming reply aborted")
