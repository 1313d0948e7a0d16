"""HTTP endpoint the relay talks to: POST /api/chat."""
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from agent.llm import get_llm_client
from agent.llm.base import LLMClient
from agent.modules.infer import extract_inference
from agent.modules.reply import reply, stream_reply
from config import settings
from errors import ConfigurationError

logger = logging.getLogger(__name__)

app = FastAPI(title="Spoiler-free entertainment chat")


class ChatMessage(BaseModel):
    role: str
    content: str = ""


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage] = Field(default_factory=list)
    stream: bool = False
    infer_only: bool = Field(default=False, alias="inferOnly")
    danger_mode: bool = Field(default=False, alias="dangerMode")
    last_answer: str = Field(default="", alias="lastAnswer")


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


@app.exception_handler(ConfigurationError)
async def _configuration_error(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("Configuration error: %s", exc)
    return _error(str(exc), 500)


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}


@app.post("/api/chat")
async def chat(body: ChatRequest, llm: LLMClient = Depends(get_llm_client)):
    messages = [m.model_dump() for m in body.messages]
    try:
        # Classification only (sent after a streamed answer completes)
        if body.infer_only:
            inference = await extract_inference(llm, messages, body.last_answer)
            return {"inference": inference.to_wire()}

        if body.stream:
            chunks = await stream_reply(
                messages,
                llm,
                danger_mode=body.danger_mode,
                max_tokens=settings.reply_max_tokens,
                temperature=settings.reply_temperature,
            )
            return StreamingResponse(
                chunks,
                media_type="text/plain; charset=utf-8",
                headers={"Cache-Control": "no-cache"},
            )

        text = await reply(
            messages,
            llm,
            danger_mode=body.danger_mode,
            max_tokens=settings.reply_max_tokens,
            temperature=settings.reply_temperature,
        )
        if not text:
            return _error("Empty response from model", 502)
        inference = await extract_inference(llm, messages, text)
        return {"message": text, "inference": inference.to_wire()}
    except Exception:
        logger.exception("/api/chat error")
        return _error("Failed to generate response", 500)
