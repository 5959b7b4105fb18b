"""Completion candidates and the helpers that act on them.

Finding candidates is the caller's business: a :data:`CompletionProvider`
receives the line and cursor and returns a :class:`CompletionSet`. This
module computes the common prefix of a set and lays candidates out for
interactive selection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from pi.line.utils import INDEX_KEYS, visible_width

StyleFn = Callable[[str], str]


@dataclass
class Candidate:
    """A possible completion.

    ``needs_quotes`` wraps the word in double quotes when it is inserted.
    ``style`` and ``help_style`` colour the word and help text in listings.
    """

    word: str
    help: str = ""
    needs_quotes: bool = False
    style: StyleFn | None = None
    help_style: StyleFn | None = None

    @property
    def replacement(self) -> str:
        return f'"{self.word}"' if self.needs_quotes else self.word


@dataclass
class CompletionSet:
    """Candidates for one completion request.

    ``start``/``end`` delimit the span of the line the chosen candidate
    replaces. ``hint`` is free text shown above the listing.
    """

    candidates: list[Candidate] = field(default_factory=list)
    start: int = 0
    end: int = 0
    hint: str | None = None
    hint_style: StyleFn | None = None

    def __len__(self) -> int:
        return len(self.candidates)

    def add(
        self,
        word: str,
        help: str = "",
        needs_quotes: bool = False,
        style: StyleFn | None = None,
        help_style: StyleFn | None = None,
    ) -> Candidate:
        candidate = Candidate(word, help, needs_quotes, style, help_style)
        self.candidates.append(candidate)
        return candidate

    def setup(self, start: int, end: int) -> None:
        self.start = start
        self.end = end

    def set_hint(self, hint: str, style: StyleFn | None = None) -> None:
        self.hint = hint
        self.hint_style = style

    def replacement(self, index: int) -> str:
        return self.candidates[index].replacement

    def common_prefix(self) -> str:
        return common_prefix(self.candidates)


CompletionProvider = Callable[[str, int], CompletionSet | None]
"""Called with ``(line, cursor)``; returns candidates or ``None``."""


def common_prefix(candidates: list[Candidate]) -> str:
    """Longest case-sensitive prefix shared by every candidate word.

    A lone candidate that needs quoting yields its quoted form, so
    completing it inserts the quotes too.
    """
    if not candidates:
        return ""
    if len(candidates) == 1:
        return candidates[0].replacement

    prefix = candidates[0].word
    for candidate in candidates[1:]:
        i = 0
        limit = min(len(prefix), len(candidate.word))
        while i < limit and prefix[i] == candidate.word[i]:
            i += 1
        prefix = prefix[:i]
        if not prefix:
            break
    return prefix


# ---------------------------------------------------------------------------
# Listing layout
# ---------------------------------------------------------------------------

_KEY_WIDTH = 4
_GAP = 4
_MAX_GRID_COLUMNS = 3


def _styled(text: str, style: StyleFn | None) -> str:
    return style(text) if style and text else text


def format_candidates(completions: CompletionSet, columns: int) -> tuple[list[str], dict[str, int]]:
    """Render the candidate listing for a terminal *columns* wide.

    When any candidate carries help text every candidate gets its own line
    with the help aligned after the words; otherwise the words are laid out
    in a grid of up to three columns. Returns the lines and a map from each
    mnemonic key to the candidate's index. Only as many candidates as there
    are keys are listed.
    """
    shown = completions.candidates[: len(INDEX_KEYS)]
    if not shown:
        return [], {}

    keys = {INDEX_KEYS[i]: i for i in range(len(shown))}
    word_len = max(visible_width(c.word) for c in shown)
    lines: list[str] = []

    if any(c.help for c in shown):
        for i, candidate in enumerate(shown):
            pad = " " * (_GAP + word_len - visible_width(candidate.word))
            lines.append(
                f"{INDEX_KEYS[i]:>{_KEY_WIDTH}}:  "
                + _styled(candidate.word, candidate.style)
                + pad
                + _styled(candidate.help, candidate.help_style)
            )
        return lines, keys

    per_row = max(1, min(columns // (word_len + _KEY_WIDTH + 2 + _GAP), _MAX_GRID_COLUMNS))
    row: list[str] = []
    for i, candidate in enumerate(shown):
        cell = f"{INDEX_KEYS[i]:>{_KEY_WIDTH}}:  " + _styled(candidate.word, candidate.style)
        last_in_row = (i + 1) % per_row == 0 or i == len(shown) - 1
        if not last_in_row:
            cell += " " * (word_len - visible_width(candidate.word) + _GAP)
        row.append(cell)
        if last_in_row:
            lines.append("".join(row))
            row = []
    return lines, keys


def format_hint(completions: CompletionSet) -> str | None:
    if not completions.hint:
        return None
    return "Please input: " + _styled(completions.hint, completions.hint_style)
