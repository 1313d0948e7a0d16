"""All Telegram command and message handlers.

Each chat gets its own ConversationRelay. A reply is shown as one bot message
that is edited while the answer streams in and replaced by the final text.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from time import monotonic
from typing import Optional

from telegram import Message, Update
from telegram.constants import ChatAction, ParseMode
from telegram.error import TelegramError
from telegram.ext import ContextTypes

from agent.llm.factory import model_name
from bot import formatter
from config import settings
from relay import ChatTransport, ConversationRelay, ConversationView, PendingMessage, Role

logger = logging.getLogger(__name__)

_BUSY_MSG = "⏳ Still answering your previous message. Send it again once I'm done."
_EMPTY_REPLY_MSG = "🤔 I had nothing to say to that. Could you rephrase?"

_relays: dict[int, ConversationRelay] = {}
_transport: Optional[ChatTransport] = None


def _get_transport() -> ChatTransport:
    global _transport
    if _transport is None:
        _transport = ChatTransport(
            settings.chat_endpoint,
            timeout=settings.request_timeout_seconds,
        )
    return _transport


def get_relay(chat_id: int) -> ConversationRelay:
    relay = _relays.get(chat_id)
    if relay is None:
        relay = ConversationRelay(_get_transport())
        _relays[chat_id] = relay
    return relay


async def close_transport() -> None:
    global _transport
    if _transport is not None:
        await _transport.aclose()
        _transport = None


@asynccontextmanager
async def _typing(context: ContextTypes.DEFAULT_TYPE, chat_id: int):
    """Sends TYPING chat action repeatedly until the block exits.

    Telegram expires the indicator after ~5 s, so we refresh every 4 s.
    """
    stop = asyncio.Event()

    async def _loop():
        while not stop.is_set():
            try:
                await context.bot.send_chat_action(chat_id=chat_id, action=ChatAction.TYPING)
            except TelegramError as exc:
                logger.debug("Typing indicator failed: %s", exc)
            try:
                await asyncio.wait_for(stop.wait(), timeout=4)
            except asyncio.TimeoutError:
                pass

    task = asyncio.create_task(_loop())
    try:
        yield
    finally:
        stop.set()
        await asyncio.gather(task, return_exceptions=True)


class ReplyRenderer:
    """Mirrors the relay's in-progress reply into a single Telegram message.

    Edits are throttled to one per ``interval`` seconds; ``finish`` always
    writes the final text.
    """

    def __init__(self, update: Update, interval: float):
        self._update = update
        self._interval = interval
        self._draft: Optional[Message] = None
        self._shown = ""
        self._last_edit = 0.0

    async def __call__(self, view: ConversationView) -> None:
        if not view.messages:
            return
        last = view.messages[-1]
        if not isinstance(last, PendingMessage):
            return
        if self._draft is not None and monotonic() - self._last_edit < self._interval:
            return
        await self._show(formatter.tail(last.content))

    async def _show(self, text: str) -> None:
        if text == self._shown:
            return
        try:
            if self._draft is None:
                self._draft = await self._update.message.reply_text(text)
            else:
                await self._draft.edit_text(text)
        except TelegramError as exc:
            logger.debug("Draft update failed: %s", exc)
            return
        self._shown = text
        self._last_edit = monotonic()

    async def discard(self) -> None:
        if self._draft is None:
            return
        try:
            await self._draft.delete()
        except TelegramError as exc:
            logger.debug("Could not delete draft: %s", exc)
        self._draft = None

    async def finish(self, final_text: Optional[str]) -> None:
        if not final_text:
            await self.discard()
            await self._update.message.reply_text(_EMPTY_REPLY_MSG)
            return

        parts = formatter.split_message(final_text)
        first, rest = parts[0], parts[1:]
        if self._draft is None:
            await self._update.message.reply_text(first)
        else:
            self._shown = ""
            await self._show(first)
        for part in rest:
            await self._update.message.reply_text(part)


# ── /start ────────────────────────────────────────────────────────────────────

async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.message.reply_text(
        "👋 Welcome to the *Spoiler\\-free Entertainment Chat*\n\n"
        "Ask me about a game, movie, series, anime or book and tell me how far "
        "you are\\. I'll help without spoiling what comes next\\.\n\n"
        "Send /help to see all available commands\\.",
        parse_mode=ParseMode.MARKDOWN_V2,
    )


# ── /help ─────────────────────────────────────────────────────────────────────

async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    text = (
        "📖 *Commands*\n\n"
        "Just send a message to chat\\.\n\n"
        "/reset \\- Forget this conversation and start over\n"
        "/danger \\- Toggle danger mode \\(videogame spoilers allowed\\)\n"
        "/status \\- Show the model and what I think you're on"
    )
    await update.message.reply_text(text, parse_mode=ParseMode.MARKDOWN_V2)


# ── /reset ────────────────────────────────────────────────────────────────────

async def cmd_reset(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    # The next message builds a fresh relay; danger mode starts off again.
    relay = _relays.pop(update.effective_chat.id, None)
    if relay is not None:
        relay.reset()
    await update.message.reply_text("🧹 Conversation cleared.")


# ── /danger ───────────────────────────────────────────────────────────────────

async def cmd_danger(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    relay = get_relay(update.effective_chat.id)
    relay.danger_mode = not relay.danger_mode
    if relay.danger_mode:
        await update.message.reply_text(
            "⚠️ Danger mode ON: I may spoil videogames to get you unstuck. "
            "Other media stay spoiler-free. Send /danger again to turn it off."
        )
    else:
        await update.message.reply_text("🛡 Danger mode OFF: zero spoilers for everything.")


# ── /status ───────────────────────────────────────────────────────────────────

async def cmd_status(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    relay = get_relay(update.effective_chat.id)
    text = formatter.format_status(
        provider=settings.llm_provider.lower(),
        model=model_name(),
        danger_mode=relay.danger_mode,
        turns=len(relay.history()),
        inference=relay.inference,
    )
    await update.message.reply_text(text, parse_mode=ParseMode.MARKDOWN_V2)


# ── plain text ────────────────────────────────────────────────────────────────

async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if not update.message or not update.message.text:
        return
    cid = update.effective_chat.id
    relay = get_relay(cid)
    if relay.is_loading:
        await update.message.reply_text(_BUSY_MSG)
        return

    renderer = ReplyRenderer(update, settings.stream_edit_interval_seconds)
    unsubscribe = relay.subscribe(renderer)
    before = len(relay.history())
    try:
        async with _typing(context, cid):
            accepted = await relay.submit(update.message.text)
    finally:
        unsubscribe()
    if not accepted:
        return
    if len(relay.history()) <= before:
        # /reset arrived while answering
        await renderer.discard()
        return

    new_messages = relay.messages[before:]
    answer = None
    if new_messages and new_messages[-1].role == Role.ASSISTANT:
        answer = new_messages[-1].content
    await renderer.finish(answer)
