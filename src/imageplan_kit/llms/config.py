# src/imageplan_kit/llms/config.py

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class LLMConfig:
    """Configuration for LLM clients.

    Immutable. Explicit. No magic defaults from environment.
    """

    provider: Literal["openai", "anthropic"]
    model: str
    api_key: str | None = None  # Falls back to provider's env var
    api_base: str | None = None  # OpenAI-compatible gateways, with or without /v1
    timeout: float = 30.0
    max_retries: int = 3
