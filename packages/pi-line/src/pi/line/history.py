"""Append-only store of previously accepted lines."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

from pi.line.utils import INDEX_KEYS

logger = logging.getLogger(__name__)


class History:
    """Ordered log of accepted lines, oldest first.

    Appending the same text twice in a row stores it once. When
    *no_search_repeats* is set, :meth:`search` lists each distinct text only
    once.
    """

    def __init__(self, no_search_repeats: bool = False) -> None:
        self._entries: list[str] = []
        self.no_search_repeats = no_search_repeats

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> str:
        return self._entries[index]

    def count(self) -> int:
        return len(self._entries)

    def get(self, index: int) -> str:
        return self._entries[index]

    def last(self) -> str | None:
        return self._entries[-1] if self._entries else None

    def append(self, text: str) -> None:
        """Add *text* unless it equals the newest entry.

        Text with embedded newlines is stored one line per entry, since the
        file format cannot represent it otherwise.
        """
        for line in text.split("\n"):
            if line == self.last():
                continue
            self._entries.append(line)

    def clear(self) -> None:
        self._entries.clear()

    def delete(self, index: int, n: int = 1) -> None:
        """Remove *n* entries starting at *index*."""
        del self._entries[index : index + n]

    # -- search ---------------------------------------------------------------

    def search(
        self,
        pattern: str = "",
        max_results: int = 0,
        forward: bool = False,
    ) -> dict[str, int]:
        """Find entries containing *pattern* (case-sensitive substring).

        Entries are scanned oldest to newest when *forward* is set, newest to
        oldest otherwise. Empty entries never match. The result maps a
        mnemonic key from :data:`INDEX_KEYS` to the entry's index, in the
        order the matches were found, and holds at most *max_results* items
        (``0`` means as many as there are keys).

        With ``no_search_repeats`` only the oldest occurrence of a repeated
        text is kept.
        """
        limit = len(INDEX_KEYS)
        if 0 < max_results < limit:
            limit = max_results

        first_seen: dict[str, int] = {}
        if self.no_search_repeats:
            for index, entry in enumerate(self._entries):
                first_seen.setdefault(entry, index)

        order = range(len(self._entries))
        if not forward:
            order = reversed(order)

        matches: dict[str, int] = {}
        for index in order:
            entry = self._entries[index]
            if not entry or pattern not in entry:
                continue
            if self.no_search_repeats and first_seen[entry] != index:
                continue
            matches[INDEX_KEYS[len(matches)]] = index
            if len(matches) >= limit:
                break
        return matches

    # -- persistence ----------------------------------------------------------

    def load(self, path: str | Path) -> int:
        """Append the lines of *path* in file order and return how many were read.

        A missing file is not an error; anything else raises ``OSError``.
        """
        path = Path(path)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("history file %s does not exist", path)
            return 0

        lines = content.splitlines()
        for line in lines:
            self.append(line)
        logger.debug("loaded %d history lines from %s", len(lines), path)
        return len(lines)

    def save(self, path: str | Path) -> None:
        """Overwrite *path* with every entry, one per line."""
        path = Path(path)
        path.write_text("".join(entry + "\n" for entry in self._entries), encoding="utf-8")
        logger.debug("saved %d history lines to %s", len(self._entries), path)
