# tests/unit/planning/conftest.py

import json
from collections.abc import AsyncIterator, Callable
from typing import Any
from unittest.mock import MagicMock

import pytest

from imageplan_kit.llms.base import Message

PLANS: list[dict[str, Any]] = [
    {
        "index": 1,
        "type": "cover",
        "coreMessage": "Travel light",
        "position": "start-of-document",
        "title": "Pack Smart",
        "subtitle": "Ten items, no more",
        "prompt": "Hand-drawn suitcase, pastel background",
    },
    {
        "index": 2,
        "type": "content",
        "coreMessage": "Roll, don't fold",
        "position": "after paragraph 1",
        "title": "Rolling Clothes",
        "prompt": "Cartoon rolled shirts {in a row}",
    },
]


class FakeLLM:
    """Streams a canned answer in fixed-size fragments."""

    def __init__(self, answer: str, size: int = 3) -> None:
        self.fragments = [answer[i : i + size] for i in range(0, len(answer), size)]
        self.sent = 0
        self.calls: list[dict] = []
        self.metrics_hook = MagicMock()

    async def stream(
        self,
        *,
        messages: list[Message],
        temperature: float = 0.0,
        max_tokens: int | None = None,
    ) -> AsyncIterator[str]:
        self.calls.append(
            {"messages": messages, "temperature": temperature, "max_tokens": max_tokens}
        )
        for fragment in self.fragments:
            self.sent += 1
            yield fragment


@pytest.fixture
def plans() -> list[dict[str, Any]]:
    """Raw plan objects as the model would write them."""
    return [dict(p) for p in PLANS]


@pytest.fixture
def answer(plans: list[dict[str, Any]]) -> str:
    """A fenced model answer with commentary in front."""
    return "Here you go:\n```json\n" + json.dumps(plans, indent=2) + "\n```"


@pytest.fixture
def make_llm() -> Callable[..., FakeLLM]:
    return FakeLLM
