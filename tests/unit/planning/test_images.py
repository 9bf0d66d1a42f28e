# tests/unit/planning/test_images.py

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest

from imageplan_kit.planning.images import generate_images, insert_images
from imageplan_kit.planning.models import GeneratedImage, ImagePlan
from imageplan_kit.planning.planner import ImagePlanner


DOC = "Packing is an art.\n\nRoll your clothes."


def _plan(index: int, position: str, title: str = "Img") -> ImagePlan:
    return ImagePlan(index=index, position=position, title=title, prompt=f"p{index}")


class FakeGenerator:
    def __init__(self, results: dict[str, str | Exception]) -> None:
        self._results = results
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        result = self._results[prompt]
        if isinstance(result, Exception):
            raise result
        return result


class TestGenerateImages:
    @pytest.mark.asyncio
    async def test_failures_are_recorded_and_others_continue(self) -> None:
        plans = [_plan(1, "start-of-document"), _plan(2, "end"), _plan(3, "end")]
        generator = FakeGenerator(
            {"p1": RuntimeError("quota exceeded"), "p2": "", "p3": "https://img/3.png"}
        )
        metrics_hook = MagicMock()

        results = await generate_images(plans, generator, metrics_hook=metrics_hook)

        assert generator.prompts == ["p1", "p2", "p3"]
        assert [r.completed for r in results] == [False, False, True]
        assert results[0].error == "quota exceeded"
        assert results[1].error == "No image URL returned"
        assert results[2].url == "https://img/3.png"
        assert metrics_hook.increment.call_count == 2


class TestGeneratedImage:
    def test_markdown(self) -> None:
        image = GeneratedImage(plan=_plan(1, "end", title="Cover"), url="a.png")

        assert image.markdown == "![Cover](a.png)"

    def test_markdown_requires_url(self) -> None:
        image = GeneratedImage(plan=_plan(1, "end"), error="boom")

        with pytest.raises(ValueError, match="was not generated"):
            image.markdown


class TestInsertImages:
    def test_inserts_completed_images_at_their_positions(self) -> None:
        images = [
            GeneratedImage(plan=_plan(1, "start-of-document", "A"), url="a.png"),
            GeneratedImage(plan=_plan(2, "after paragraph 1", "B"), url="b.png"),
            GeneratedImage(plan=_plan(3, "end-of-document", "C"), error="failed"),
        ]

        result = insert_images(DOC, images)

        assert result == (
            "![A](a.png)\n\nPacking is an art.\n\n![B](b.png)\n\nRoll your clothes."
        )

    def test_nothing_completed_returns_document(self) -> None:
        images = [GeneratedImage(plan=_plan(1, "end"), error="failed")]

        assert insert_images(DOC, images) == DOC


@pytest.mark.asyncio
async def test_plan_generate_insert_round_trip(
    plans: list[dict[str, Any]], make_llm: Callable
) -> None:
    llm = make_llm("```json\n" + json.dumps(plans) + "\n```", size=5)
    generator = FakeGenerator({p["prompt"]: f"https://img/{p['index']}.png" for p in plans})

    planned = await ImagePlanner(llm).plan("Packing", DOC)
    images = await generate_images(planned, generator)
    result = insert_images(DOC, images)

    assert result == (
        "![Pack Smart](https://img/1.png)\n\n"
        "Packing is an art.\n\n"
        "![Rolling Clothes](https://img/2.png)\n\n"
        "Roll your clothes."
    )
