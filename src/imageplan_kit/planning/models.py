# src/imageplan_kit/planning/models.py

from dataclasses import dataclass

from pydantic import BaseModel, Field


class ImagePlan(BaseModel):
    """One planned image, as described by the model.

    Field names follow the JSON the prompt asks for; ``coreMessage`` is
    exposed as ``core_message``.
    """

    index: int
    type: str = ""
    core_message: str = Field("", alias="coreMessage")
    position: str = "end-of-document"
    title: str
    subtitle: str | None = None
    description: str | None = None
    prompt: str

    class Config:
        extra = "ignore"
        populate_by_name = True


@dataclass(frozen=True)
class GeneratedImage:
    """Outcome of generating the image for one plan.

    Exactly one of ``url`` and ``error`` is set.
    """

    plan: ImagePlan
    url: str | None = None
    error: str | None = None

    @property
    def completed(self) -> bool:
        return self.url is not None

    @property
    def markdown(self) -> str:
        if self.url is None:
            raise ValueError(f"Image for plan {self.plan.index} was not generated")
        return f"![{self.plan.title}]({self.url})"
