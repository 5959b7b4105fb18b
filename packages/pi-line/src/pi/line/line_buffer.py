"""Editable single-line text buffer with word-aware primitives.

A "word" is a maximal run of characters that are not in the buffer's
delimiter string. Every operation keeps ``0 <= cursor <= len(text)``.
"""

from __future__ import annotations

import string

from pi.line.clip_register import ClipRegister
from pi.line.utils import next_grapheme_length, previous_grapheme_length

DEFAULT_DELIMITERS = " " + string.punctuation
"""Space plus every printable ASCII character that is not a letter or digit."""


class LineBuffer:
    """Text under edit plus a cursor offset.

    Mutating methods return ``True`` when the text changed so the caller can
    decide how much of the line to redraw.
    """

    def __init__(
        self,
        text: str = "",
        *,
        delimiters: str = DEFAULT_DELIMITERS,
        clip: ClipRegister | None = None,
    ) -> None:
        self.text: str = text
        self.cursor: int = len(text)
        self.delimiters = delimiters or DEFAULT_DELIMITERS
        self.clip = clip if clip is not None else ClipRegister()

    def __len__(self) -> int:
        return len(self.text)

    def is_delimiter(self, ch: str) -> bool:
        return ch in self.delimiters

    # -- whole-buffer ---------------------------------------------------------

    def set_text(self, text: str, cursor: int | None = None) -> None:
        self.text = text
        self.cursor = len(text) if cursor is None else max(0, min(cursor, len(text)))

    def clear(self) -> None:
        self.set_text("")

    def replace(self, start: int, end: int, text: str) -> None:
        """Replace ``text[start:end]`` and leave the cursor after the new text."""
        start = max(0, min(start, len(self.text)))
        end = max(start, min(end, len(self.text)))
        self.text = self.text[:start] + text + self.text[end:]
        self.cursor = start + len(text)

    # -- insertion / deletion -------------------------------------------------

    def insert(self, text: str) -> bool:
        if not text:
            return False
        self.text = self.text[: self.cursor] + text + self.text[self.cursor :]
        self.cursor += len(text)
        return True

    def delete_range(self, start: int, end: int) -> str:
        """Remove ``text[start:end]`` and return it.

        The cursor keeps its position relative to the surviving text.
        """
        start = max(0, min(start, len(self.text)))
        end = max(start, min(end, len(self.text)))
        removed = self.text[start:end]
        self.text = self.text[:start] + self.text[end:]
        if self.cursor > end:
            self.cursor -= end - start
        elif self.cursor > start:
            self.cursor = start
        return removed

    def delete_backward(self) -> bool:
        length = previous_grapheme_length(self.text, self.cursor)
        if not length:
            return False
        self.delete_range(self.cursor - length, self.cursor)
        return True

    def delete_forward(self) -> bool:
        length = next_grapheme_length(self.text, self.cursor)
        if not length:
            return False
        self.delete_range(self.cursor, self.cursor + length)
        return True

    # -- motion ---------------------------------------------------------------

    def move_left(self) -> bool:
        length = previous_grapheme_length(self.text, self.cursor)
        self.cursor -= length
        return bool(length)

    def move_right(self) -> bool:
        length = next_grapheme_length(self.text, self.cursor)
        self.cursor += length
        return bool(length)

    def move_home(self) -> None:
        self.cursor = 0

    def move_end(self) -> None:
        self.cursor = len(self.text)

    def word_left(self, pos: int | None = None) -> int:
        """Start of the word before *pos* (default: the cursor)."""
        i = self.cursor if pos is None else pos
        while i > 0 and self.is_delimiter(self.text[i - 1]):
            i -= 1
        while i > 0 and not self.is_delimiter(self.text[i - 1]):
            i -= 1
        return i

    def word_right(self, pos: int | None = None) -> int:
        """End of the word at or after *pos* (default: the cursor)."""
        i = self.cursor if pos is None else pos
        n = len(self.text)
        while i < n and self.is_delimiter(self.text[i]):
            i += 1
        while i < n and not self.is_delimiter(self.text[i]):
            i += 1
        return i

    def move_word_left(self) -> None:
        self.cursor = self.word_left()

    def move_word_right(self) -> None:
        self.cursor = self.word_right()

    # -- case and layout ------------------------------------------------------

    def _following_word(self) -> tuple[int, int]:
        start = self.cursor
        while start < len(self.text) and self.is_delimiter(self.text[start]):
            start += 1
        return start, self.word_right(start)

    def upper_word(self) -> bool:
        start, end = self._following_word()
        return self._recase(start, end, self.text[start:end].upper())

    def lower_word(self) -> bool:
        start, end = self._following_word()
        return self._recase(start, end, self.text[start:end].lower())

    def capitalize_word(self) -> bool:
        """Upper-case the first letter of the current or following word."""
        start, end = self._following_word()
        word = self.text[start:end]
        return self._recase(start, end, word[:1].upper() + word[1:])

    def _recase(self, start: int, end: int, word: str) -> bool:
        changed = word != self.text[start:end]
        self.text = self.text[:start] + word + self.text[end:]
        self.cursor = start + len(word)
        return changed

    def trim_whitespace(self) -> bool:
        """Delete the run of spaces on both sides of the cursor."""
        start = self.cursor
        while start > 0 and self.text[start - 1] == " ":
            start -= 1
        end = self.cursor
        while end < len(self.text) and self.text[end] == " ":
            end += 1
        if start == end:
            return False
        self.delete_range(start, end)
        self.cursor = start
        return True

    def transpose(self) -> bool:
        """Swap the characters either side of the cursor and step forward.

        At the end of the line the last two characters are swapped instead.
        Characters are never swapped with a delimiter.
        """
        pos, text = self.cursor, self.text
        if (
            0 < pos < len(text)
            and not self.is_delimiter(text[pos])
            and not self.is_delimiter(text[pos - 1])
        ):
            self.text = text[: pos - 1] + text[pos] + text[pos - 1] + text[pos + 1 :]
            self.cursor = pos + 1
            return True
        if (
            pos > 1
            and not self.is_delimiter(text[pos - 1])
            and not self.is_delimiter(text[pos - 2])
        ):
            self.text = text[: pos - 2] + text[pos - 1] + text[pos - 2] + text[pos:]
            return True
        return False

    # -- cut and paste --------------------------------------------------------

    def cut(self, start: int, end: int) -> bool:
        """Move ``text[start:end]`` into the clip register."""
        removed = self.delete_range(start, end)
        self.clip.set(removed)
        return bool(removed)

    def cut_to_end(self) -> bool:
        return self.cut(self.cursor, len(self.text))

    def cut_to_start(self) -> bool:
        return self.cut(0, self.cursor)

    def cut_line(self) -> bool:
        return self.cut(0, len(self.text))

    def cut_word_left(self) -> bool:
        return self.cut(self.word_left(), self.cursor)

    def cut_word_right(self) -> bool:
        return self.cut(self.cursor, self.word_right())

    def cut_to_whitespace_left(self) -> bool:
        """Cut back to the previous space, treating punctuation as part of the word."""
        i = self.cursor
        while i > 0 and self.text[i - 1] == " ":
            i -= 1
        while i > 0 and self.text[i - 1] != " ":
            i -= 1
        return self.cut(i, self.cursor)

    def paste(self) -> bool:
        return self.insert(self.clip.get())
