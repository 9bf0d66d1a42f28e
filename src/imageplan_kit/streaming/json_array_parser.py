# src/imageplan_kit/streaming/json_array_parser.py

"""Incremental extraction of objects from a streamed JSON array.

LLM answers arrive a few characters at a time and are frequently wrapped in
commentary or a markdown code fence. The parser looks for the opening ``[``,
then walks every character exactly once, handing back each top-level
``{...}`` element as soon as its closing brace has been received.
"""

import json
import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from imageplan_kit.observability import names
from imageplan_kit.observability.base import MetricsHook, NoOpMetricsHook

logger = logging.getLogger(__name__)

_FENCED_BLOCK = re.compile(r"```[\w-]*[ \t]*\r?\n(.*?)```", re.DOTALL)


@dataclass
class ScanState:
    """Scanner state carried from one chunk to the next.

    ``depth`` counts the ``{`` and ``[`` opened inside the element currently
    being scanned. Zero means the scanner sits between elements of the
    top-level array.
    """

    in_string: bool = False
    escape_next: bool = False
    depth: int = 0
    array_started: bool = False


class IncrementalJSONArrayParser:
    """Stateful scanner for a single streamed JSON array.

    One instance per stream. Chunks must be fed in arrival order.

    Example:
        >>> parser = IncrementalJSONArrayParser()
        >>> parser.add_chunk('Sure! ```json\\n[{"index": 1, "a"')
        []
        >>> parser.add_chunk(': "x"}, {"index": 2')
        [{'index': 1, 'a': 'x'}]
        >>> parser.try_parse_final()
        [{'index': 1, 'a': 'x'}]
    """

    def __init__(self, metrics_hook: MetricsHook = NoOpMetricsHook()) -> None:
        self.metrics_hook = metrics_hook
        self.reset()

    def reset(self) -> None:
        """Drop all buffered text and captured items."""
        self._buffer = ""
        self._cursor = 0
        self._state = ScanState()
        self._array_start = -1
        self._array_end = -1
        self._element_start = -1
        self._items: list[Any] = []
        self._seen_indices: set[float] = set()

    @property
    def items(self) -> list[Any]:
        """Every item emitted so far, in emission order."""
        return list(self._items)

    @property
    def finished(self) -> bool:
        """True once the closing bracket of the top-level array was seen."""
        return self._array_end != -1

    def add_chunk(self, text: str) -> list[Any]:
        """Append ``text`` and return the elements it completed.

        Safe to call with chunks of any size, including empty strings.
        Returns an empty list while the array start has not been found and
        after the array has been closed.
        """
        if self.finished:
            return []

        self._buffer += text

        if not self._state.array_started:
            start = self._buffer.find("[", self._cursor)
            if start == -1:
                self._cursor = len(self._buffer)
                return []
            logger.debug("Located array start at offset %d", start)
            self._state.array_started = True
            self._array_start = start
            self._cursor = start + 1

        emitted = self._scan()
        if emitted:
            self.metrics_hook.increment(names.STREAM_ITEMS_EMITTED, len(emitted))
        return emitted

    def try_parse_final(self) -> list[Any] | None:
        """Best-effort parse of everything received.

        Candidates are tried in order: the array the scanner closed, the
        outermost ``[...]`` of the whole buffer, then the body of each
        markdown code fence. The first one that parses to a non-empty list
        wins. The fences cover answers whose commentary contains a bracket
        ahead of the real array. If none parses, the items captured
        incrementally are returned instead. ``None`` only when neither
        produced anything.
        """
        for span in self._final_spans():
            try:
                parsed = json.loads(span)
            except json.JSONDecodeError as e:
                logger.debug("Full parse failed: %s", e)
                continue
            if isinstance(parsed, list) and parsed:
                return parsed

        self.metrics_hook.increment(names.STREAM_FINAL_PARSE_FALLBACKS)
        if self._items:
            return list(self._items)
        return None

    def _scan(self) -> list[Any]:
        state = self._state
        buffer = self._buffer
        emitted: list[Any] = []

        i = self._cursor
        while i < len(buffer):
            char = buffer[i]
            i += 1

            if state.escape_next:
                state.escape_next = False
            elif state.in_string:
                if char == "\\":
                    state.escape_next = True
                elif char == '"':
                    state.in_string = False
            elif char == '"':
                state.in_string = True
            elif char in "{[":
                if state.depth == 0:
                    # Only objects are emitted; other nested values are tracked
                    # so their brackets do not end the array early.
                    self._element_start = i - 1 if char == "{" else -1
                state.depth += 1
            elif char in "}]":
                if state.depth == 0:
                    if char == "]":
                        self._array_end = i - 1
                        logger.debug("Array closed at offset %d", self._array_end)
                        break
                    continue
                state.depth -= 1
                if state.depth == 0 and self._element_start != -1:
                    item = self._decode(self._element_start, i)
                    self._element_start = -1
                    if item is not None and self._accept(item):
                        emitted.append(item)

        self._cursor = i
        return emitted

    def _decode(self, start: int, end: int) -> dict[str, Any] | None:
        raw = self._buffer[start:end]
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            self.metrics_hook.increment(names.STREAM_MALFORMED_ELEMENTS)
            logger.warning(
                "Skipping malformed element at offset %d: %s (%r)",
                start,
                e,
                raw[:200],
            )
            return None

    def _accept(self, item: dict[str, Any]) -> bool:
        index = item.get("index")
        if isinstance(index, (int, float)) and not isinstance(index, bool):
            if index in self._seen_indices:
                self.metrics_hook.increment(names.STREAM_DUPLICATES_SUPPRESSED)
                logger.debug("Suppressing duplicate element with index=%s", index)
                return False
            self._seen_indices.add(index)
        self._items.append(item)
        return True

    def _final_spans(self) -> Iterator[str]:
        if self.finished:
            yield self._buffer[self._array_start : self._array_end + 1]

        first = self._buffer.find("[")
        last = self._buffer.rfind("]")
        if first != -1 and last > first:
            yield self._buffer[first : last + 1]

        for match in _FENCED_BLOCK.finditer(self._buffer):
            body = match.group(1).strip()
            if body.startswith("["):
                yield body
