import logging

from jinja2 import Environment, StrictUndefined
from pydantic import BaseModel

logger = logging.getLogger(__name__)

# Plain-text prompts; a placeholder without a value fails instead of
# rendering as an empty string.
_env = Environment(
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)


class Prompt(BaseModel):
    name: str
    version: str
    description: str
    inputs: dict[str, str]
    template: str

    class Config:
        extra = "forbid"

    def render(self, **values: str) -> str:
        """Render the jinja2 ``template`` with ``values``.

        Raises:
            KeyError: If a declared input is missing from ``values``.
            jinja2.UndefinedError: If the template uses a name that was not
                passed in.
        """
        missing = [name for name in self.inputs if name not in values]
        if missing:
            logger.error("Missing inputs for prompt %s: %s", self.name, missing)
            raise KeyError(f"Prompt '{self.name}' missing inputs: {', '.join(missing)}")

        return _env.from_string(self.template).render(**values)
