import logging
from typing import Sequence

from errors import RelayError
from relay.cancellation import CancelToken
from relay.messages import Envelope, FinalMessage, Inference
from relay.transport import ChatTransport

logger = logging.getLogger(__name__)


class Classifier:
    """Asks the chat endpoint which media title and story position a turn is about.

    Best effort: ``classify`` always returns an Inference. Any failure along the
    way (request error, superseded token, unexpected body) gives
    ``Inference.unknown()`` so the conversation itself is never blocked.
    """

    def __init__(self, transport: ChatTransport):
        self._transport = transport

    async def classify(
        self,
        history: Sequence[FinalMessage],
        final_answer: str,
        token: CancelToken,
        danger_mode: bool = False,
    ) -> Inference:
        envelope = Envelope(
            messages=tuple(history),
            infer_only=True,
            danger_mode=danger_mode,
            last_answer=final_answer,
        )
        try:
            data = await self._transport.call(envelope, token)
        except RelayError as exc:
            logger.warning("Classification failed: %s", exc)
            return Inference.unknown()
        except Exception:
            logger.exception("Unexpected classification error")
            return Inference.unknown()
        if not isinstance(data, dict):
            return Inference.unknown()
        return Inference.from_wire(data.get("inference"))
