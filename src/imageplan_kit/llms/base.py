# src/imageplan_kit/llms/base.py

from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import Enum
from typing import Literal, Protocol

from imageplan_kit.observability.base import MetricsHook


class Role(str, Enum):
    """Message role in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """A single message in the conversation.

    Immutable. Provider-agnostic.
    """

    role: Role
    content: str


@dataclass(frozen=True)
class Usage:
    """Token usage for a completion."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass(frozen=True)
class LLMResponse:
    """Normalized non-streamed LLM response.

    Provider details never leak outside the adapter.
    """

    content: str
    finish_reason: Literal["stop", "length", "error"]
    usage: Usage
    latency_ms: float


class LLMClient(Protocol):
    """Protocol for LLM clients.

    Design principles:
    - Stateless: Every call receives full message list
    - Transport only: Retries only on network/rate-limit errors
    - No leakage: Provider objects never escape the adapter
    """

    metrics_hook: MetricsHook

    async def complete(
        self,
        *,
        messages: list[Message],
        temperature: float = 0.0,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Single completion, returned whole."""
        ...

    def stream(
        self,
        *,
        messages: list[Message],
        temperature: float = 0.0,
        max_tokens: int | None = None,
    ) -> AsyncIterator[str]:
        """Stream a completion as text fragments.

        Args:
            messages: Complete conversation history. No internal state.
            temperature: Sampling temperature (0.0 = deterministic).
            max_tokens: Maximum tokens in response.

        Yields:
            Non-empty text fragments in arrival order. Fragment boundaries
            are arbitrary and may split words, escapes or JSON tokens.

        Note:
            Only opening the stream is retried. A failure mid-stream
            propagates; the caller keeps whatever it already consumed.
        """
        ...
