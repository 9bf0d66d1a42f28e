# src/imageplan_kit/planning/images.py

import logging
from time import monotonic
from typing import Protocol

from imageplan_kit.observability import names
from imageplan_kit.observability.base import MetricsHook, NoOpMetricsHook
from imageplan_kit.placement.insertion import InsertionRequest, apply_insertions

from .models import GeneratedImage, ImagePlan

logger = logging.getLogger(__name__)


class ImageGenerator(Protocol):
    """Text-to-image provider. Returns the URL of the generated image."""

    async def generate(self, prompt: str) -> str: ...


async def generate_images(
    plans: list[ImagePlan],
    generator: ImageGenerator,
    *,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> list[GeneratedImage]:
    """Generate one image per plan, one at a time.

    A failing plan is reported on its result and does not stop the others.
    """
    results: list[GeneratedImage] = []
    for plan in plans:
        start = monotonic()
        try:
            url = await generator.generate(plan.prompt)
        except Exception as e:
            metrics_hook.increment(names.IMAGE_GENERATION_ERRORS_TOTAL)
            logger.warning("Image generation failed for plan %d: %s", plan.index, e)
            results.append(GeneratedImage(plan=plan, error=str(e) or type(e).__name__))
            continue

        elapsed_ms = 1000 * (monotonic() - start)
        metrics_hook.record_latency(names.IMAGE_GENERATION_DURATION, elapsed_ms)

        if not url:
            metrics_hook.increment(names.IMAGE_GENERATION_ERRORS_TOTAL)
            logger.warning("Image provider returned no URL for plan %d", plan.index)
            results.append(GeneratedImage(plan=plan, error="No image URL returned"))
            continue

        logger.debug("Generated image for plan %d: %s", plan.index, url)
        results.append(GeneratedImage(plan=plan, url=url))

    logger.info(
        "Generated %d of %d images",
        sum(1 for r in results if r.completed),
        len(results),
    )
    return results


def insert_images(
    document: str,
    images: list[GeneratedImage],
    *,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> str:
    """Place every completed image at the position its plan asked for."""
    requests = [
        InsertionRequest(position=image.plan.position, content=image.markdown)
        for image in images
        if image.completed
    ]
    if not requests:
        logger.warning("No generated images to insert")
        return document
    return apply_insertions(document, requests, metrics_hook=metrics_hook)
