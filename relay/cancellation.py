"""Generation-based cancellation tokens.

Each conversation turn gets a token from a ``TokenSource``. Issuing a new
token cancels the previous one, so a stale turn can always tell that it has
been superseded before it touches shared state.
"""
from __future__ import annotations

from errors import RequestCancelled


class CancelToken:
    def __init__(self, source: "TokenSource", generation: int):
        self._source = source
        self.generation = generation
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled or self._source.generation != self.generation

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise RequestCancelled(f"request generation {self.generation} was superseded")

    def __repr__(self) -> str:
        return f"CancelToken(generation={self.generation}, cancelled={self.cancelled})"


class TokenSource:
    def __init__(self):
        self.generation = 0
        self._current: CancelToken | None = None

    def next(self) -> CancelToken:
        """Cancel the current token and return a fresh one."""
        self.cancel()
        self.generation += 1
        self._current = CancelToken(self, self.generation)
        return self._current

    def cancel(self) -> None:
        if self._current is not None:
            self._current.cancel()
            self._current = None

    def is_current(self, token: CancelToken) -> bool:
        return token is self._current and not token.cancelled
