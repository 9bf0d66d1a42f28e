# src/imageplan_kit/llms/__init__.py

"""LLM client layer for imageplan-kit.

Provides a thin, stateless abstraction over LLM providers. Streams are
exposed as plain text fragments so they can be fed straight into
:class:`~imageplan_kit.streaming.IncrementalJSONArrayParser`.

Design principles:
- Stateless: Every call receives full message list
- Transport only: Retries only on network/rate-limit errors
- No leakage: Provider objects never escape the adapter

Example:
    >>> from imageplan_kit.llms import create_llm_client, LLMConfig, Message, Role
    >>>
    >>> config = LLMConfig(provider="openai", model="gpt-4o")
    >>> client = create_llm_client(config)
    >>>
    >>> async for fragment in client.stream(
    ...     messages=[Message(role=Role.USER, content="Hello!")]
    ... ):
    ...     print(fragment, end="")
"""

from .base import LLMClient, LLMResponse, Message, Role, Usage
from .config import LLMConfig
from .factory import create_llm_client

__all__ = [
    # Factory
    "create_llm_client",
    # Protocol
    "LLMClient",
    # Config
    "LLMConfig",
    # Types
    "Message",
    "Role",
    "LLMResponse",
    "Usage",
]
