"""Tests for pi.line.keybindings -- the fixed action table and help text."""

from __future__ import annotations

from typing import get_args

from pi.line.keybindings import KEYBINDINGS, SEARCH_HELP, EditorAction, action_for, help_lines, keys_for


class TestBindings:
    """Key to action lookup."""

    def test_every_action_has_a_key(self) -> None:
        for action in get_args(EditorAction):
            assert keys_for(action), action

    def test_no_key_is_bound_twice(self) -> None:
        keys = [key for bound in KEYBINDINGS.values() for key in bound]
        assert len(keys) == len(set(keys))

    def test_common_lookups(self) -> None:
        assert action_for("ctrl+a") == "cursorLineStart"
        assert action_for("enter") == "submit"
        assert action_for("ctrl+c") == "interrupt"
        assert action_for("ctrl+r") == "historySearch"
        assert action_for("tab") == "complete"
        assert action_for("alt+?") == "listCompletions"
        assert action_for("ctrl+w") == "cutToWhitespaceBackward"

    def test_unbound_key(self) -> None:
        assert action_for("x") is None
        assert action_for("escape") is None

    def test_keys_for_returns_copy(self) -> None:
        keys = keys_for("paste")
        keys.append("f9")
        assert keys_for("paste") == ["ctrl+y", "ctrl+v", "insert"]


class TestHelp:
    def test_tables_are_rectangular(self) -> None:
        table_rows = [line for line in help_lines() if line.startswith(" |") or line.startswith(" +")]
        assert table_rows
        assert len({len(line) for line in table_rows}) == 1

    def test_sections_present(self) -> None:
        text = "\n".join(help_lines())
        for title in ("Misc Commands", "Move Commands", "History Commands", "Control Commands"):
            assert title in text

    def test_search_help_mentions_matching_rule(self) -> None:
        assert any("case-sensitive" in line for line in SEARCH_HELP)
