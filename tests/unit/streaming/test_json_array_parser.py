# tests/unit/streaming/test_json_array_parser.py

import json
from typing import Any
from unittest.mock import MagicMock

import pytest

from imageplan_kit.streaming.json_array_parser import (
    IncrementalJSONArrayParser,
    ScanState,
)

ITEMS: list[dict[str, Any]] = [
    {"index": 1, "title": "Cover", "position": "start-of-document"},
    {
        "index": 2,
        "title": "Braces } and ] inside text",
        "tags": ["a", "b"],
        "meta": {"nested": {"x": 1}},
        "position": "after paragraph 2",
    },
    {
        "index": 3,
        "title": 'Escaped " quote and backslash \\',
        "position": "第3段后",
    },
]
SAMPLE = json.dumps(ITEMS, ensure_ascii=False, indent=2)


def feed(parser: IncrementalJSONArrayParser, text: str, size: int) -> list[Any]:
    emitted: list[Any] = []
    for i in range(0, len(text), size):
        emitted.extend(parser.add_chunk(text[i : i + size]))
    return emitted


class TestAddChunk:
    def test_single_chunk_yields_all_items(self) -> None:
        parser = IncrementalJSONArrayParser()

        assert parser.add_chunk(SAMPLE) == ITEMS

    @pytest.mark.parametrize("size", [1, 2, 3, 7, 64])
    def test_any_chunk_size_yields_same_items(self, size: int) -> None:
        """Chunk boundaries never change what is emitted."""
        parser = IncrementalJSONArrayParser()

        assert feed(parser, SAMPLE, size) == ITEMS

    def test_item_emitted_as_soon_as_it_closes(self) -> None:
        parser = IncrementalJSONArrayParser()
        close = SAMPLE.index("}") + 1

        assert parser.add_chunk(SAMPLE[: close - 1]) == []
        assert parser.add_chunk(SAMPLE[close - 1 : close]) == [ITEMS[0]]

    def test_empty_chunk_is_accepted(self) -> None:
        parser = IncrementalJSONArrayParser()

        assert parser.add_chunk("") == []
        assert parser.add_chunk('[{"index": 1}]') == [{"index": 1}]

    def test_waits_for_array_start(self) -> None:
        parser = IncrementalJSONArrayParser()

        assert parser.add_chunk("Sure, here ") == []
        assert parser.add_chunk("you go: ") == []
        assert parser.add_chunk('[{"index": 1}') == [{"index": 1}]

    def test_text_without_array_yields_nothing(self) -> None:
        parser = IncrementalJSONArrayParser()

        assert parser.add_chunk("I cannot help with that.") == []
        assert parser.try_parse_final() is None

    def test_fenced_block_with_commentary(self) -> None:
        text = (
            "Here are the plans you asked for:\n\n```json\n"
            + SAMPLE
            + "\n```\nLet me know if you need changes!"
        )
        parser = IncrementalJSONArrayParser()

        assert feed(parser, text, 5) == ITEMS
        assert parser.try_parse_final() == ITEMS

    def test_fence_without_language_tag(self) -> None:
        parser = IncrementalJSONArrayParser()

        assert parser.add_chunk("```\n" + SAMPLE + "\n```") == ITEMS

    def test_nested_arrays_and_scalars_do_not_end_the_array(self) -> None:
        parser = IncrementalJSONArrayParser()

        result = parser.add_chunk('[1, "two ]", [3, {"index": 9}], {"index": 4}]')

        assert result == [{"index": 4}]
        assert parser.finished

    def test_chunks_after_close_are_ignored(self) -> None:
        parser = IncrementalJSONArrayParser()
        parser.add_chunk('[{"index": 1}]')

        assert parser.finished
        assert parser.add_chunk('{"index": 2}]') == []
        assert parser.items == [{"index": 1}]


class TestDuplicates:
    def test_repeated_numeric_index_is_emitted_once(self) -> None:
        parser = IncrementalJSONArrayParser()

        result = parser.add_chunk('[{"index": 1, "a": "x"}, {"index": 1, "a": "x"}]')

        assert result == [{"index": 1, "a": "x"}]
        assert parser.items == [{"index": 1, "a": "x"}]

    def test_items_without_index_are_not_deduplicated(self) -> None:
        parser = IncrementalJSONArrayParser()

        assert parser.add_chunk('[{"a": 1}, {"a": 1}]') == [{"a": 1}, {"a": 1}]

    def test_boolean_index_is_not_numeric(self) -> None:
        parser = IncrementalJSONArrayParser()

        result = parser.add_chunk('[{"index": true}, {"index": true}]')

        assert len(result) == 2

    def test_duplicates_reported_to_metrics(self) -> None:
        metrics_hook = MagicMock()
        parser = IncrementalJSONArrayParser(metrics_hook=metrics_hook)

        parser.add_chunk('[{"index": 1}, {"index": 1}]')

        metrics_hook.increment.assert_any_call("stream_duplicates_suppressed")


class TestMalformedElements:
    def test_malformed_element_is_skipped(self) -> None:
        metrics_hook = MagicMock()
        parser = IncrementalJSONArrayParser(metrics_hook=metrics_hook)

        result = parser.add_chunk('[{"index": 1, "a": x}, {"index": 2}]')

        assert result == [{"index": 2}]
        metrics_hook.increment.assert_any_call("stream_malformed_elements")

    def test_emitted_count_reported_to_metrics(self) -> None:
        metrics_hook = MagicMock()
        parser = IncrementalJSONArrayParser(metrics_hook=metrics_hook)

        parser.add_chunk(SAMPLE)

        metrics_hook.increment.assert_any_call("stream_items_emitted", 3)


class TestTryParseFinal:
    def test_complete_stream_parses_whole_array(self) -> None:
        parser = IncrementalJSONArrayParser()
        feed(parser, SAMPLE, 4)

        assert parser.try_parse_final() == ITEMS

    def test_is_idempotent(self) -> None:
        parser = IncrementalJSONArrayParser()
        parser.add_chunk('x [{"index": 1}, {"index": 2, "a"')

        first = parser.try_parse_final()
        second = parser.try_parse_final()

        assert first == second == [{"index": 1}]

    def test_full_parse_covers_non_object_elements(self) -> None:
        parser = IncrementalJSONArrayParser()

        assert parser.add_chunk("[1, 2]") == []
        assert parser.try_parse_final() == [1, 2]

    def test_empty_array_returns_none(self) -> None:
        parser = IncrementalJSONArrayParser()
        parser.add_chunk("[]")

        assert parser.try_parse_final() is None

    def test_split_object_in_fenced_stream(self) -> None:
        parser = IncrementalJSONArrayParser()

        first = parser.add_chunk('Here is the JSON:\n```json\n[{"index":1,"a":"x"')
        second = parser.add_chunk("}]\n```")

        assert first == []
        assert second == [{"index": 1, "a": "x"}]
        assert parser.try_parse_final() == [{"index": 1, "a": "x"}]

    def test_fenced_array_recovered_after_bracket_in_commentary(self) -> None:
        """A bracket in the preamble closes the scan; the fence still parses."""
        text = "Revised plans [draft]:\n```json\n" + SAMPLE + "\n```\nDone."
        parser = IncrementalJSONArrayParser()

        assert feed(parser, text, 6) == []
        assert parser.finished
        assert parser.try_parse_final() == ITEMS

    def test_stray_brace_falls_back_to_captured_items(self) -> None:
        parser = IncrementalJSONArrayParser()

        emitted = parser.add_chunk('Here is the JSON:\n```json\n[{"index":1,"a":"x"}')
        emitted += parser.add_chunk("}]\n```")

        assert emitted == [{"index": 1, "a": "x"}]
        assert parser.try_parse_final() == [{"index": 1, "a": "x"}]


class TestState:
    def test_reset_clears_everything(self) -> None:
        parser = IncrementalJSONArrayParser()
        parser.add_chunk('[{"index": 1}]')

        parser.reset()

        assert parser.items == []
        assert not parser.finished
        assert parser.try_parse_final() is None
        assert parser.add_chunk('[{"index": 1}]') == [{"index": 1}]

    def test_items_returns_copy(self) -> None:
        parser = IncrementalJSONArrayParser()
        parser.add_chunk('[{"index": 1}')

        parser.items.clear()

        assert parser.items == [{"index": 1}]

    def test_scan_state_defaults(self) -> None:
        state = ScanState()

        assert (state.in_string, state.escape_next, state.depth) == (False, False, 0)
        assert state.array_started is False
