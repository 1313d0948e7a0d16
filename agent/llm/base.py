from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator


@dataclass
class LLMResponse:
    content: str
    tokens_used: int = 0
    model: str = ""


class LLMClient(ABC):
    """Abstract base for all LLM providers."""

    @abstractmethod
    async def chat(
        self,
        system: str,
        messages: list[dict],
        max_tokens: int = 1024,
        temperature: float = 0.4,
    ) -> LLMResponse:
        """Send a multi-turn chat request.

        messages: [{"role": "user"|"assistant", "content": "..."}, ...]
        """
        ...

    @abstractmethod
    def stream_chat(
        self,
        system: str,
        messages: list[dict],
        max_tokens: int = 1024,
        temperature: float = 0.4,
    ) -> AsyncIterator[str]:
        """Same as chat(), but yields text deltas as the model produces them."""
        ...
