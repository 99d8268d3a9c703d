from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class UpstreamSuccess:
    raw_text: str
    ok: bool = True


@dataclass(frozen=True)
class UpstreamFailure:
    """Terminal failure of one ``send`` call, after the client's own retries.

    ``kind`` is one of ``http``, ``non_json``, ``timeout``, ``network``.
    """
    status: int
    error: str
    raw: Any = None
    kind: str = "http"
    ok: bool = False


UpstreamResult = Union[UpstreamSuccess, UpstreamFailure]


class LLMProvider(ABC):
    """Abstract base class for text-generation providers."""

    name: str = "llm"

    @property
    @abstractmethod
    def configured(self) -> bool:
        """True when the provider has the credentials it needs."""
        ...

    @abstractmethod
    async def send(self, prompt: str, attempt: int = 1) -> UpstreamResult:
        """Send one prompt as a single user message.

        ``attempt`` is the 1-based attempt number to start from; it drives
        temperature, timeout and how many client-side retries remain.
        """
        ...

    async def aclose(self) -> None:
        return None
