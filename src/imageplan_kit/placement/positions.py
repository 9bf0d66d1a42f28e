# src/imageplan_kit/placement/positions.py

"""Mapping of position hints to character offsets in a markdown document.

Hints come from the model ("after paragraph 3", "文章开头", "at the end") and
are pattern-matched into a small closed set of descriptors. Anything that
cannot be matched, or that points past the document, lands at the end of the
document so an insertion is never dropped.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum

from imageplan_kit.observability import names
from imageplan_kit.observability.base import MetricsHook, NoOpMetricsHook

logger = logging.getLogger(__name__)


class PositionKind(str, Enum):
    """Recognized insertion targets."""

    START = "start-of-document"
    END = "end-of-document"
    AFTER_PARAGRAPH = "after-paragraph"
    AFTER_SENTENCE = "after-sentence"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class PositionDescriptor:
    """A parsed position hint.

    ``number`` is the 1-based paragraph or sentence number for the
    ``AFTER_*`` kinds and ``None`` otherwise. ``raw`` keeps the original hint.
    """

    kind: PositionKind
    number: int | None = None
    raw: str = ""


# Numbered patterns are checked before the start/end keywords so that
# "end of paragraph 2" targets the paragraph.
_PARAGRAPH_PATTERNS = (
    re.compile(r"\bparagraph\s*#?\s*(\d+)", re.IGNORECASE),
    re.compile(r"第\s*(\d+)\s*段"),
)
_SENTENCE_PATTERNS = (
    re.compile(r"\bsentence\s*#?\s*(\d+)", re.IGNORECASE),
    re.compile(r"第\s*(\d+)\s*句"),
)
# English start words only count when they refer to the whole document, so
# "top-level heading" or "start of section 3" stay unrecognized.
_START_PATTERN = re.compile(
    r"\b(?:start|beginning|top)[- ]of[- ](?:the[- ])?"
    r"(?:document|article|post|page)\b"
    r"|\bat[- ]the[- ](?:start|beginning|top)\b(?![- ]of\b)"
    r"|^\s*(?:start|beginning|top|cover(?:[- ](?:image|page))?)\s*$"
    r"|开头|开始|封面",
    re.IGNORECASE,
)
_END_PATTERN = re.compile(
    r"\b(?:end[- ]of[- ](?:the[- ])?document|end|ending|bottom|conclusion)\b"
    r"|结尾|结束|总结",
    re.IGNORECASE,
)

# Two or more newlines, blank lines may carry trailing whitespace.
_PARAGRAPH_BREAK = re.compile(r"[ \t\r]*\n(?:[ \t\r]*\n)+")

# Full-width marks always end a sentence (CJK text has no spaces); half-width
# ones only when followed by whitespace or the end of the text, so "3.14"
# and "e.g.x" stay whole.
_SENTENCE_END = re.compile(r"[。！？]+[”’」』）]*|[.!?]+(?=\s|$)")
_WHITESPACE = re.compile(r"\s*")


def parse_position(text: str) -> PositionDescriptor:
    """Classify a free-form position hint."""
    raw = text or ""

    for pattern in _PARAGRAPH_PATTERNS:
        match = pattern.search(raw)
        if match:
            return PositionDescriptor(
                PositionKind.AFTER_PARAGRAPH, int(match.group(1)), raw
            )

    for pattern in _SENTENCE_PATTERNS:
        match = pattern.search(raw)
        if match:
            return PositionDescriptor(
                PositionKind.AFTER_SENTENCE, int(match.group(1)), raw
            )

    if _START_PATTERN.search(raw):
        return PositionDescriptor(PositionKind.START, raw=raw)
    if _END_PATTERN.search(raw):
        return PositionDescriptor(PositionKind.END, raw=raw)

    return PositionDescriptor(PositionKind.UNRECOGNIZED, raw=raw)


def paragraph_spans(document: str) -> list[tuple[int, int]]:
    """Return ``(start, end)`` of every non-blank paragraph, in order."""
    spans = []
    start = 0
    for match in _PARAGRAPH_BREAK.finditer(document):
        if document[start : match.start()].strip():
            spans.append((start, match.start()))
        start = match.end()
    if document[start:].strip():
        spans.append((start, len(document)))
    return spans


def sentence_breaks(document: str) -> list[int]:
    """Return the offset following each sentence and the whitespace after it."""
    breaks = []
    for match in _SENTENCE_END.finditer(document):
        after = _WHITESPACE.match(document, match.end())
        breaks.append(after.end() if after else match.end())
    return breaks


def resolve_position(
    document: str,
    descriptor: str | PositionDescriptor,
    *,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> int:
    """Compute the insertion offset for ``descriptor`` within ``document``.

    Args:
        document: The text to insert into. Never modified.
        descriptor: A raw hint or an already parsed descriptor.
        metrics_hook: Receives a counter whenever the end-of-document
            fallback is taken.

    Returns:
        An offset in ``[0, len(document)]`` sitting on a paragraph or
        sentence boundary.
    """
    if isinstance(descriptor, str):
        descriptor = parse_position(descriptor)

    end = len(document)
    kind = descriptor.kind
    number = descriptor.number or 0

    if kind is PositionKind.START:
        return 0
    if kind is PositionKind.END:
        return end

    if kind is PositionKind.AFTER_PARAGRAPH:
        spans = paragraph_spans(document)
        if 0 < number < len(spans):
            return spans[number][0]
        if number > 0 and number == len(spans):
            return end
        logger.warning(
            "Paragraph %d out of range (%d paragraphs), using end-of-document",
            number,
            len(spans),
        )
    elif kind is PositionKind.AFTER_SENTENCE:
        breaks = sentence_breaks(document)
        if 0 < number <= len(breaks):
            return breaks[number - 1]
        logger.warning(
            "Sentence %d out of range (%d sentences), using end-of-document",
            number,
            len(breaks),
        )
    else:
        logger.warning(
            "Unrecognized position %r, using end-of-document", descriptor.raw
        )

    metrics_hook.increment(names.PLACEMENT_FALLBACKS_TOTAL, labels={"kind": kind.value})
    return end
