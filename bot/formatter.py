"""Format conversation state as Telegram messages."""
import re
from typing import Optional

from relay.messages import Inference

# Characters that must be escaped in MarkdownV2
_ESCAPE_CHARS = r"\_*[]()~`>#+-=|{}.!"

_MAX_MESSAGE_CHARS = 4000  # leave headroom below 4096

_MEDIA_ICONS = {
    "movie": "🎬",
    "series": "📺",
    "anime": "🌸",
    "book": "📖",
    "videogame": "🎮",
}


def escape(text: str) -> str:
    """Escape special characters for Telegram MarkdownV2."""
    return re.sub(r"([" + re.escape(_ESCAPE_CHARS) + r"])", r"\\\1", text)


def split_message(text: str, limit: int = _MAX_MESSAGE_CHARS) -> list[str]:
    """Split text into Telegram-sized parts, preferring paragraph and line breaks."""
    parts: list[str] = []
    rest = text
    while len(rest) > limit:
        cut = rest.rfind("\n\n", 0, limit)
        if cut <= 0:
            cut = rest.rfind("\n", 0, limit)
        if cut <= 0:
            cut = limit
        parts.append(rest[:cut].rstrip())
        rest = rest[cut:].lstrip("\n")
    if rest or not parts:
        parts.append(rest)
    return parts


def tail(text: str, limit: int = _MAX_MESSAGE_CHARS) -> str:
    """Last ``limit`` characters, for drafts that outgrew one message."""
    if len(text) <= limit:
        return text
    return "…" + text[-(limit - 1):]


def format_inference(inference: Optional[Inference]) -> str:
    if inference is None or inference.is_unknown:
        return "🔎 Not sure yet what you are watching, reading or playing\\."
    icon = _MEDIA_ICONS.get(inference.media_type, "❔")
    lines = [
        f"{icon} Type: `{escape(inference.media_type or 'unknown')}`",
        f"🏷 Title: {escape(inference.title or 'unknown')}",
        f"📍 Position: {escape(inference.position or 'unknown')}",
    ]
    return "\n".join(lines)


def format_status(
    provider: str,
    model: str,
    danger_mode: bool,
    turns: int,
    inference: Optional[Inference],
) -> str:
    danger = "⚠️ ON \\(videogame spoilers allowed\\)" if danger_mode else "🛡 OFF"
    lines = [
        "⚙️ *Bot Status*",
        "",
        f"🤖 LLM: `{escape(provider)}` / `{escape(model)}`",
        f"💬 Messages in conversation: `{turns}`",
        f"Danger mode: {danger}",
        "",
        "*Current context*",
        format_inference(inference),
    ]
    return "\n".join(lines)
