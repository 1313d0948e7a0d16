"""Exception types shared by the relay, the chat endpoint and the bot."""
from __future__ import annotations

GENERIC_ERROR_TEXT = "Sorry, something went wrong while answering. Please try again in a moment."


class RelayError(Exception):
    """Base exception for the chat relay."""


class ConfigurationError(RelayError):
    """Raised when provider credentials or settings are missing."""


class TransportError(RelayError):
    """The chat endpoint could not be reached or answered with a failure status.

    status_code is None for network-level failures (no response at all);
    server_error carries the endpoint's ``error`` field when it sent one.
    """

    def __init__(self, message: str, status_code: int | None = None, server_error: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.server_error = server_error

    @property
    def user_message(self) -> str:
        return self.server_error or str(self) or GENERIC_ERROR_TEXT


class RequestCancelled(RelayError):
    """A newer turn superseded the request. Not shown to the user."""


class MalformedUpstreamResponse(RelayError):
    """The endpoint answered with a body of an unexpected shape."""
