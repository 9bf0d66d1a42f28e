"""AI image-planning workflow.

Example:
    >>> planner = ImagePlanner(create_llm_client(config))
    >>> async for plan in planner.stream_plans(title, body):
    ...     show(plan)
    >>> images = await generate_images(plans, my_generator)
    >>> body = insert_images(body, images)
"""

from .images import ImageGenerator, generate_images, insert_images
from .models import GeneratedImage, ImagePlan
from .planner import ImagePlanner, PlanParseError

__all__ = [
    "GeneratedImage",
    "ImageGenerator",
    "ImagePlan",
    "ImagePlanner",
    "PlanParseError",
    "generate_images",
    "insert_images",
]
