"""Single-entry cut buffer shared by every read of an editor session."""

from __future__ import annotations


class ClipRegister:
    """Holds the most recently cut text.

    Each cut overwrites the register; paste reads it without clearing, so the
    same text can be pasted repeatedly. Nested reads (history search, match
    selection) share the register with the read that started them.
    """

    def __init__(self) -> None:
        self._text: str = ""

    def set(self, text: str) -> None:
        """Replace the register contents. Cutting an empty span empties it."""
        self._text = text

    def get(self) -> str:
        return self._text

    def clear(self) -> None:
        self._text = ""
