"""Tests for pi.line.utils -- cell widths and grapheme stepping."""

from __future__ import annotations

from pi.line.utils import (
    INDEX_KEYS,
    grapheme_width,
    next_grapheme_length,
    previous_grapheme_length,
    strip_ansi,
    visible_width,
)


# ---------------------------------------------------------------------------
# visible_width
# ---------------------------------------------------------------------------


class TestVisibleWidth:
    """Measure the visible terminal width of text."""

    def test_plain_ascii(self) -> None:
        assert visible_width("hello") == 5

    def test_empty_string(self) -> None:
        assert visible_width("") == 0

    def test_ansi_codes_do_not_count(self) -> None:
        assert visible_width("\x1b[1mhi\x1b[0m") == 2

    def test_wide_cjk_characters_count_as_two(self) -> None:
        assert visible_width("\u4e16") == 2
        assert visible_width("A\u4e16B") == 4

    def test_combining_mark_adds_nothing(self) -> None:
        assert visible_width("e\u0301") == 1

    def test_emoji_sequence_is_two_cells(self) -> None:
        assert grapheme_width("\U0001f468\u200d\U0001f469\u200d\U0001f467") == 2

    def test_control_characters_are_zero_width(self) -> None:
        assert grapheme_width("\x07") == 0


class TestStripAnsi:
    def test_removes_csi_and_osc(self) -> None:
        text = "\x1b[31mred\x1b[0m \x1b]8;;https://example.com\x07link\x1b]8;;\x07"
        assert strip_ansi(text) == "red link"


# ---------------------------------------------------------------------------
# Grapheme stepping
# ---------------------------------------------------------------------------


class TestGraphemeStepping:
    """Cluster lengths either side of an index."""

    def test_ascii(self) -> None:
        assert previous_grapheme_length("abc", 2) == 1
        assert next_grapheme_length("abc", 2) == 1

    def test_combining_sequence(self) -> None:
        text = "xe\u0301y"
        assert previous_grapheme_length(text, 3) == 2
        assert next_grapheme_length(text, 1) == 2

    def test_bounds(self) -> None:
        assert previous_grapheme_length("abc", 0) == 0
        assert next_grapheme_length("abc", 3) == 0


def test_index_keys_are_unique() -> None:
    assert len(INDEX_KEYS) == len(set(INDEX_KEYS)) == 61
