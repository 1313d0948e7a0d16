"""The conversation state machine.

One ConversationRelay owns one conversation: the ordered messages, the single
in-progress reply, the loading/streaming flags and the latest inference. A
turn runs

    IDLE -> SENDING -> STREAMING -> FINALIZING -> CLASSIFY_PENDING -> IDLE

and any transport or configuration failure drops straight back to IDLE with
an assistant message carrying the error text.

Every mutation done on behalf of a turn first checks that the turn's
CancelToken is still current, so a superseded turn can never write into the
state of the turn that replaced it.
"""
import asyncio
import inspect
import logging
from contextlib import aclosing
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from agent.prompts import chat as chat_prompts
from errors import (
    GENERIC_ERROR_TEXT,
    ConfigurationError,
    MalformedUpstreamResponse,
    RequestCancelled,
    TransportError,
)
from relay.cancellation import CancelToken, TokenSource
from relay.classifier import Classifier
from relay.decoder import decode_stream
from relay.messages import (
    ConversationView,
    Envelope,
    FinalMessage,
    Inference,
    PendingMessage,
    Role,
)
from relay.transport import ChatTransport

logger = logging.getLogger(__name__)

Observer = Callable[[ConversationView], Union[None, Awaitable[None]]]


class RelayState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    FINALIZING = "finalizing"
    CLASSIFY_PENDING = "classify_pending"


class ConversationRelay:
    def __init__(
        self,
        transport: ChatTransport,
        classifier: Optional[Classifier] = None,
        system_prompt: str = chat_prompts.SYSTEM,
        danger_mode: bool = False,
        streaming: bool = True,
    ):
        self._transport = transport
        self._classifier = classifier or Classifier(transport)
        self.system_prompt = system_prompt
        self.danger_mode = danger_mode
        self.streaming = streaming

        self._messages: list[FinalMessage] = []
        self._pending: Optional[PendingMessage] = None
        self._tokens = TokenSource()
        self._observers: list[Observer] = []

        self.state = RelayState.IDLE
        self.is_loading = False
        self.is_streaming = False
        self.inference: Optional[Inference] = None

    # ── presentation-facing API ───────────────────────────────────────────────

    @property
    def messages(self) -> tuple:
        if self._pending is None:
            return tuple(self._messages)
        return (*self._messages, self._pending)

    def view(self) -> ConversationView:
        return ConversationView(
            messages=self.messages,
            is_loading=self.is_loading,
            is_streaming=self.is_streaming,
            inference=self.inference,
            state=self.state.value,
        )

    def history(self) -> list[dict]:
        """Finalized messages as they are replayed to the endpoint."""
        return [m.to_wire() for m in self._messages]

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Call ``observer`` with a fresh view after every transition.

        Returns a function that removes the observer again.
        """
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    async def submit(self, text: str) -> bool:
        """Start a turn. Returns False when the text was dropped.

        Text is dropped when it is blank or a turn is already in flight;
        submissions are never queued.
        """
        text = text.strip()
        if not text or self.is_loading:
            return False

        token = self._tokens.next()
        self._pending = None
        self._messages.append(FinalMessage(Role.USER, text))
        self.is_loading = True
        self.is_streaming = False
        self.state = RelayState.SENDING

        # Snapshot: later appends must not leak into this turn's requests.
        outgoing = (FinalMessage(Role.SYSTEM, self.system_prompt), *self._messages)

        try:
            await self._notify(token)
            if self.streaming:
                answer = await self._stream_reply(outgoing, token)
                inference = await self._classifier.classify(
                    outgoing, answer, token, danger_mode=self.danger_mode
                )
            else:
                inference = await self._fetch_reply(outgoing, token)
            self._ensure_current(token)
            if inference is not None:
                self.inference = inference
            self._finish()
        except RequestCancelled:
            logger.debug("Turn superseded: %r", token)
            return True
        except (TransportError, ConfigurationError) as exc:
            if self._tokens.is_current(token):
                self._fail(_error_text(exc))
        except asyncio.CancelledError:
            if self._tokens.is_current(token):
                self._tokens.cancel()
                self._finish()
            raise
        except Exception:
            logger.exception("Conversation turn failed")
            if self._tokens.is_current(token):
                self._fail(GENERIC_ERROR_TEXT)

        if self._tokens.is_current(token):
            self._tokens.cancel()
            await self._notify()
        return True

    def reset(self) -> None:
        """Cancel whatever is in flight and forget the conversation."""
        self._tokens.cancel()
        self._messages.clear()
        self._pending = None
        self.inference = None
        self.is_loading = False
        self.is_streaming = False
        self.state = RelayState.IDLE

    # ── turn steps ────────────────────────────────────────────────────────────

    async def _stream_reply(self, outgoing: tuple, token: CancelToken) -> str:
        envelope = Envelope(messages=outgoing, stream=True, danger_mode=self.danger_mode)
        source = await self._transport.call(envelope, token)
        if source is None:
            raise RequestCancelled(f"request generation {token.generation} was cancelled")
        if isinstance(source, dict):
            logger.warning("Expected a byte stream, got a JSON body; treating as empty reply")
            source = _empty_stream()

        text = ""
        try:
            async with aclosing(decode_stream(source)) as fragments:
                async for fragment in fragments:
                    self._ensure_current(token)
                    text += fragment
                    if self._pending is None:
                        self.state = RelayState.STREAMING
                        self.is_streaming = True
                    self._pending = PendingMessage(text)
                    await self._notify(token)
        finally:
            # Releases the HTTP response even when the turn stops early.
            close = getattr(source, "aclose", None)
            if close is not None:
                await close()
        self._ensure_current(token)

        self.state = RelayState.FINALIZING
        self._pending = None
        if text:
            self._messages.append(FinalMessage(Role.ASSISTANT, text))
        self.is_streaming = False
        self.state = RelayState.CLASSIFY_PENDING
        await self._notify(token)
        return text

    async def _fetch_reply(self, outgoing: tuple, token: CancelToken) -> Optional[Inference]:
        """Single JSON round trip: the endpoint answers and classifies at once."""
        envelope = Envelope(messages=outgoing, danger_mode=self.danger_mode)
        try:
            data = await self._transport.call(envelope, token)
        except MalformedUpstreamResponse as exc:
            logger.warning("Treating malformed reply as empty: %s", exc)
            data = {}
        if data is None:
            raise RequestCancelled(f"request generation {token.generation} was cancelled")
        self._ensure_current(token)

        self.state = RelayState.FINALIZING
        answer = data.get("message")
        if isinstance(answer, str) and answer:
            self._messages.append(FinalMessage(Role.ASSISTANT, answer))
        if "inference" in data:
            return Inference.from_wire(data["inference"])
        return None

    def _finish(self) -> None:
        self._pending = None
        self.is_loading = False
        self.is_streaming = False
        self.state = RelayState.IDLE

    def _fail(self, text: str) -> None:
        self._pending = None
        self._messages.append(FinalMessage(Role.ASSISTANT, text))
        self._finish()

    def _ensure_current(self, token: CancelToken) -> None:
        if not self._tokens.is_current(token):
            raise RequestCancelled(f"request generation {token.generation} was superseded")

    async def _notify(self, token: Optional[CancelToken] = None) -> None:
        view = self.view()
        for observer in list(self._observers):
            try:
                result = observer(view)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Conversation observer failed")
        # Observers may have reset the conversation while we were suspended.
        if token is not None:
            self._ensure_current(token)


def _error_text(exc: Exception) -> str:
    if isinstance(exc, TransportError):
        return exc.user_message
    return str(exc) or GENERIC_ERROR_TEXT


async def _empty_stream():
    return
    yield b""
