"""HTTP client for the chat endpoint."""
import logging
from typing import AsyncIterator, Optional, Union

import httpx

from errors import ConfigurationError, MalformedUpstreamResponse, RequestCancelled, TransportError
from relay.cancellation import CancelToken
from relay.messages import Envelope

logger = logging.getLogger(__name__)


class ByteStream:
    """Raw body of a streaming reply.

    Iterating it yields byte chunks in arrival order and stops with
    ``RequestCancelled`` as soon as the token is superseded. The underlying
    response is closed when iteration ends, however it ends.
    """

    def __init__(self, response: httpx.Response, token: CancelToken):
        self._response = response
        self._token = token

    async def __aiter__(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_bytes():
                self._token.raise_if_cancelled()
                yield chunk
            self._token.raise_if_cancelled()
        except httpx.HTTPError as exc:
            raise TransportError(f"Connection lost while streaming: {exc}") from exc
        finally:
            await self._response.aclose()

    async def aclose(self) -> None:
        await self._response.aclose()


class ChatTransport:
    def __init__(
        self,
        endpoint: str,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._endpoint = endpoint
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def call(
        self, envelope: Envelope, token: CancelToken
    ) -> Union[ByteStream, dict, None]:
        """POST the envelope. Returns a ByteStream in stream mode, else the JSON body.

        Returns None without sending anything if the token is already cancelled.
        """
        if token.cancelled:
            logger.debug("Skipping request for cancelled %r", token)
            return None
        if not self._endpoint:
            raise ConfigurationError("CHAT_ENDPOINT is not configured")

        request = self._client.build_request("POST", self._endpoint, json=envelope.to_json())
        try:
            response = await self._client.send(request, stream=envelope.stream)
        except httpx.HTTPError as exc:
            raise TransportError(f"Could not reach the chat service: {exc}") from exc

        if token.cancelled:
            await response.aclose()
            raise RequestCancelled(f"request generation {token.generation} was superseded")

        if not response.is_success:
            await response.aread()
            await response.aclose()
            server_error = _error_text(response)
            logger.warning("Chat endpoint answered %d: %s", response.status_code, server_error)
            raise TransportError(
                f"Request failed: {response.status_code}",
                status_code=response.status_code,
                server_error=server_error,
            )

        if envelope.stream:
            return ByteStream(response, token)

        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedUpstreamResponse(f"Chat endpoint returned non-JSON body: {exc}") from exc
        if not isinstance(data, dict):
            raise MalformedUpstreamResponse(f"Expected a JSON object, got {type(data).__name__}")
        return data

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _error_text(response: httpx.Response) -> Optional[str]:
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return None
