r"""Position resolution and markdown insertion.

Example:
    >>> from imageplan_kit.placement import InsertionRequest, apply_insertions
    >>>
    >>> apply_insertions(
    ...     "First.\n\nSecond.",
    ...     [InsertionRequest(position="after paragraph 1", content="![a](a.png)")],
    ... )
    'First.\n\n![a](a.png)\n\nSecond.'
"""

from .insertion import InsertionRequest, apply_insertions
from .positions import (
    PositionDescriptor,
    PositionKind,
    paragraph_spans,
    parse_position,
    resolve_position,
    sentence_breaks,
)

__all__ = [
    # Engine
    "InsertionRequest",
    "apply_insertions",
    # Resolver
    "PositionDescriptor",
    "PositionKind",
    "parse_position",
    "resolve_position",
    # Boundary helpers
    "paragraph_spans",
    "sentence_breaks",
]
