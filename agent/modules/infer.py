import json
import logging
import re

from agent.llm.base import LLMClient, LLMResponse
from agent.prompts import infer as prompts
from relay.messages import Inference

logger = logging.getLogger(__name__)


async def extract_inference(llm: LLMClient, history: list[dict], last_answer: str) -> Inference:
    """Ask the model which work and story position the chat is about.

    Never raises: a failed call or unparseable reply gives Inference.unknown().
    """
    messages = [m for m in history if m.get("role") != "system"]
    messages = messages + [
        {"role": "assistant", "content": last_answer},
        {"role": "user", "content": prompts.FINAL_USER},
    ]
    try:
        response: LLMResponse = await llm.chat(
            system=prompts.SYSTEM,
            messages=messages,
            max_tokens=256,
            temperature=0,
        )
    except Exception:
        logger.exception("Inference call failed")
        return Inference.unknown()
    return Inference.from_wire(_parse_json(response.content))


def _parse_json(raw: str) -> dict:
    """Extract JSON from LLM response, handling markdown code fences."""
    cleaned = re.sub(r"^```(?:json)?\s*", "", raw.strip(), flags=re.MULTILINE)
    cleaned = re.sub(r"\s*```$", "", cleaned.strip(), flags=re.MULTILINE)
    try:
        data = json.loads(cleaned.strip())
    except json.JSONDecodeError:
        # Fallback: the model wrapped the object in prose
        match = re.search(r"\{.*\}", cleaned, re.DOTALL)
        if not match:
            logger.warning("No JSON object in inference reply: %r", raw[:200])
            return {}
        try:
            data = json.loads(match.group())
        except json.JSONDecodeError:
            logger.warning("Unparseable inference reply: %r", raw[:200])
            return {}
    return data if isinstance(data, dict) else {}
