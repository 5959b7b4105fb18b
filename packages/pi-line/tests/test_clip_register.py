"""Tests for pi.line.clip_register.ClipRegister -- single-entry cut buffer."""

from __future__ import annotations

from pi.line.clip_register import ClipRegister


class TestClipRegister:
    """Set, get and clear."""

    def test_starts_empty(self) -> None:
        clip = ClipRegister()
        assert clip.get() == ""

    def test_set_overwrites(self) -> None:
        clip = ClipRegister()
        clip.set("first")
        clip.set("second")
        assert clip.get() == "second"

    def test_get_does_not_consume(self) -> None:
        clip = ClipRegister()
        clip.set("keep")
        clip.get()
        assert clip.get() == "keep"

    def test_clear(self) -> None:
        clip = ClipRegister()
        clip.set("gone")
        clip.clear()
        assert clip.get() == ""
