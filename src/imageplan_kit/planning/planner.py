# src/imageplan_kit/planning/planner.py

import logging
from collections.abc import AsyncIterator
from time import monotonic
from typing import Any

from pydantic import ValidationError

from imageplan_kit.llms.base import LLMClient, Message, Role
from imageplan_kit.observability import names
from imageplan_kit.observability.base import MetricsHook, NoOpMetricsHook
from imageplan_kit.prompts.prompt import Prompt
from imageplan_kit.prompts.prompts_library import PromptsLibrary
from imageplan_kit.streaming.json_array_parser import IncrementalJSONArrayParser

from .models import ImagePlan

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = ("image_plans", "1.0")


class PlanParseError(ValueError):
    """The model answer could not be interpreted as image plans.

    Expected with uncooperative model output; callers usually offer a retry.
    """


class ImagePlanner:
    """Ask an LLM for image plans and hand them out while the answer streams.

    One parser is created per call, so a planner can serve concurrent
    requests.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        *,
        prompt: Prompt | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4000,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self._llm = llm_client
        self._prompt = prompt or PromptsLibrary().get(*DEFAULT_PROMPT)
        self._temperature = temperature
        self._max_tokens = max_tokens
        self.metrics_hook = metrics_hook
        logger.info(
            "Initialized ImagePlanner with prompt=%s v%s",
            self._prompt.name,
            self._prompt.version,
        )

    async def stream_plans(self, title: str, content: str) -> AsyncIterator[ImagePlan]:
        """Yield plans as soon as the model has finished describing each one.

        Once the stream ends, plans recovered only by the final full parse
        are yielded too. That happens when a bracket in the model's preamble
        ended the incremental scan early and the real array sits in a code
        fence further down.

        Raises:
            ValueError: If title or content is empty.
            PlanParseError: If the answer contained no valid plan at all.
        """
        if not title or not content:
            raise ValueError("Title and content are required")

        start = monotonic()
        parser = IncrementalJSONArrayParser(metrics_hook=self.metrics_hook)
        messages = [
            Message(
                role=Role.USER,
                content=self._prompt.render(title=title, content=content),
            )
        ]
        seen: set[int] = set()

        async for fragment in self._llm.stream(
            messages=messages,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        ):
            for item in parser.add_chunk(fragment):
                plan = self._to_plan(item)
                if plan is not None and plan.index not in seen:
                    seen.add(plan.index)
                    yield plan

        streamed = parser.items
        for item in parser.try_parse_final() or []:
            if item in streamed:
                continue
            plan = self._to_plan(item)
            if plan is not None and plan.index not in seen:
                logger.debug("Recovered plan %d from final parse", plan.index)
                seen.add(plan.index)
                yield plan

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(names.PLANNING_DURATION, elapsed_ms)

        if not seen:
            logger.warning("No image plans could be parsed from the model answer")
            raise PlanParseError("Could not interpret the image plans, please retry")

        self.metrics_hook.increment(names.PLANNING_PLANS_TOTAL, len(seen))
        logger.info("Planned %d images in %.0fms", len(seen), elapsed_ms)

    async def plan(self, title: str, content: str) -> list[ImagePlan]:
        """Collect every plan from :meth:`stream_plans`."""
        return [plan async for plan in self.stream_plans(title, content)]

    def _to_plan(self, item: Any) -> ImagePlan | None:
        try:
            return ImagePlan.model_validate(item)
        except ValidationError as e:
            self.metrics_hook.increment(names.PLANNING_INVALID_PLANS)
            logger.warning(
                "Skipping invalid image plan: %s", e.errors(include_url=False)
            )
            return None
