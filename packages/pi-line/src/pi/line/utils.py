"""Terminal text utilities: ANSI stripping, cell widths, grapheme stepping.

The renderer measures everything in terminal cells, while the line buffer
indexes Python characters. The helpers here bridge the two.
"""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth

# ---------------------------------------------------------------------------
# Mnemonic keys
# ---------------------------------------------------------------------------

INDEX_KEYS = "123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
"""Single-character selection keys handed out to listed history entries and
completion candidates, in order of discovery."""

# ---------------------------------------------------------------------------
# ANSI handling
# ---------------------------------------------------------------------------

_STRIP_RE = re.compile(
    r"\x1b\[[0-9;?]*[A-Za-z]"              # CSI
    r"|\x1b\][^\x07]*\x07"                 # OSC
    r"|\x1b_[^\x07\x1b]*(?:\x07|\x1b\\)"   # APC
)


def strip_ansi(text: str) -> str:
    return _STRIP_RE.sub("", text)


# ---------------------------------------------------------------------------
# Width cache (capped at 512 entries)
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


# ---------------------------------------------------------------------------
# Widths
# ---------------------------------------------------------------------------


def grapheme_width(g: str) -> int:
    """Return the number of terminal cells a single grapheme cluster occupies.

    Control characters and lone combining marks take no cells; emoji
    sequences (ZWJ, VS16, skin tones, flags) take two; everything else is
    whatever ``wcwidth`` reports for the base character.
    """
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or (0x7F <= cp <= 0x9F):
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        if cp in (0xFE0F, 0x200D):
            return 2
        if 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first = g[0]
    if ord(first) >= 0x1F000:
        return 2
    if unicodedata.category(first) in ("Mn", "Me", "Cf"):
        return 0
    return max(_wcwidth.wcwidth(first), 0)


def visible_width(text: str) -> int:
    """Calculate the visible terminal width of *text*, ignoring ANSI codes."""
    if not text:
        return 0

    stripped = strip_ansi(text)
    if not stripped:
        return 0

    if all(0x20 <= ord(ch) <= 0x7E for ch in stripped):
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(grapheme_width(g) for g in grapheme.graphemes(stripped))
    return _cache_width(stripped, total)


# ---------------------------------------------------------------------------
# Grapheme stepping
# ---------------------------------------------------------------------------


def previous_grapheme_length(text: str, index: int) -> int:
    """Length in characters of the grapheme cluster ending at *index*."""
    if index <= 0:
        return 0
    clusters = list(grapheme.graphemes(text[:index]))
    return len(clusters[-1]) if clusters else 1


def next_grapheme_length(text: str, index: int) -> int:
    """Length in characters of the grapheme cluster starting at *index*."""
    if index >= len(text):
        return 0
    for cluster in grapheme.graphemes(text[index:]):
        return len(cluster)
    return 1
