# src/imageplan_kit/placement/insertion.py

import logging
from dataclasses import dataclass
from time import monotonic

from imageplan_kit.observability import names
from imageplan_kit.observability.base import MetricsHook, NoOpMetricsHook

from .positions import PositionDescriptor, resolve_position

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InsertionRequest:
    """Markdown ``content`` to place at ``position``."""

    position: str | PositionDescriptor
    content: str


def apply_insertions(
    document: str,
    requests: list[InsertionRequest],
    *,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> str:
    """Insert every request into ``document`` in a single pass.

    All offsets are resolved against the original document. Requests that
    resolve to the end of the document are appended last, in input order.
    The others are applied from the highest offset down so that splicing one
    never shifts the offset of another still waiting. Existing text is only
    ever added to.

    Args:
        document: Current document body.
        requests: Insertions to apply. Order only matters for ties.
        metrics_hook: Optional metrics hook for observability.

    Returns:
        The new document body.
    """
    if not requests:
        return document

    start = monotonic()
    end = len(document)

    positioned: list[tuple[int, int, str]] = []
    appended: list[str] = []

    for order, request in enumerate(requests):
        offset = resolve_position(
            document, request.position, metrics_hook=metrics_hook
        )
        if not 0 <= offset <= end:
            logger.warning("Clamping offset %d into [0, %d]", offset, end)
            offset = min(max(offset, 0), end)

        if offset == end:
            appended.append(request.content)
        else:
            positioned.append((offset, order, request.content))

    result = document
    # Ties go in reverse input order so that earlier requests end up first.
    for offset, _, content in sorted(positioned, reverse=True):
        result = _splice(result, offset, content)
    for content in appended:
        result = _splice(result, len(result), content)

    elapsed_ms = 1000 * (monotonic() - start)
    metrics_hook.record_latency(names.PLACEMENT_APPLY_DURATION, elapsed_ms)
    metrics_hook.increment(names.PLACEMENT_INSERTIONS_TOTAL, len(requests))
    logger.info(
        "Applied %d insertions (%d appended at end)", len(requests), len(appended)
    )
    return result


def _splice(text: str, offset: int, content: str) -> str:
    """Insert ``content`` at ``offset`` with newline separation.

    At a paragraph boundary the content gets a blank line on each side.
    Inside a paragraph it gets a single newline, so no paragraph break is
    introduced into running text. Newlines already present count towards
    the separator. Separators follow the text's line endings (CRLF or LF).
    """
    before, after = text[:offset], text[offset:]

    at_boundary = (
        not before
        or not after
        or _trailing_newlines(before) >= 2
        or _leading_newlines(after) >= 2
    )
    width = 2 if at_boundary else 1
    newline = "\r\n" if "\r\n" in text else "\n"

    prefix = newline * max(0, width - _trailing_newlines(before)) if before else ""
    suffix = newline * max(0, width - _leading_newlines(after)) if after else ""
    return before + prefix + content + suffix + after


def _trailing_newlines(text: str) -> int:
    return text[len(text.rstrip("\r\n")) :].count("\n")


def _leading_newlines(text: str) -> int:
    return text[: len(text) - len(text.lstrip("\r\n"))].count("\n")
