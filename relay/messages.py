"""Conversation data types: messages, the in-progress reply, classification."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

CURSOR = "\u258d"  # appended to in-progress replies for display, never sent back
PENDING_ID = "__stream"

MEDIA_TYPES = ("movie", "series", "anime", "book", "videogame")


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class FinalMessage:
    role: Role
    content: str
    id: str = field(default_factory=_new_id)

    def to_wire(self) -> dict:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class PendingMessage:
    """The assistant reply while text is still arriving.

    Only ``text`` is real content; ``content`` adds the cursor for display.
    """

    text: str

    id = PENDING_ID
    role = Role.ASSISTANT

    @property
    def content(self) -> str:
        return self.text + CURSOR


Message = Union[FinalMessage, PendingMessage]


@dataclass(frozen=True)
class Inference:
    """What the conversation is about: media type, title and story position.

    Empty strings mean "unknown"; ``Inference.unknown()`` is the all-unknown
    result used whenever classification fails.
    """

    media_type: str = ""
    title: str = ""
    position: str = ""

    @classmethod
    def unknown(cls) -> "Inference":
        return cls()

    @property
    def is_unknown(self) -> bool:
        return not (self.media_type or self.title or self.position)

    @classmethod
    def from_wire(cls, data: object) -> "Inference":
        """Build from ``{mediaType, title, position}``; anything else is unknown."""
        if not isinstance(data, dict):
            return cls.unknown()
        media_type = str(data.get("mediaType") or "").strip().lower()
        if media_type not in MEDIA_TYPES:
            media_type = ""
        return cls(
            media_type=media_type,
            title=str(data.get("title") or "").strip(),
            position=str(data.get("position") or "").strip(),
        )

    def to_wire(self) -> dict:
        return {"mediaType": self.media_type, "title": self.title, "position": self.position}


@dataclass(frozen=True)
class Envelope:
    """One request to the chat endpoint. Built per call, never stored."""

    messages: tuple[FinalMessage, ...]
    stream: bool = False
    infer_only: bool = False
    danger_mode: bool = False
    last_answer: str = ""

    def to_json(self) -> dict:
        return {
            "messages": [m.to_wire() for m in self.messages],
            "stream": self.stream,
            "inferOnly": self.infer_only,
            "dangerMode": self.danger_mode,
            "lastAnswer": self.last_answer,
        }


@dataclass(frozen=True)
class ConversationView:
    """Read-only snapshot handed to the presentation layer."""

    messages: tuple[Message, ...]
    is_loading: bool
    is_streaming: bool
    inference: Optional[Inference]
    state: str
