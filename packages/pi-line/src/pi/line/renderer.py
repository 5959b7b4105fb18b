"""Soft-wrapping renderer for one prompt plus its line of text.

The renderer never addresses the screen absolutely. It remembers what it last
drew (:class:`DisplayState`) and reaches every new position with relative
cursor movement from there. Positions are measured in cells from the first
cell of the prompt, so offset ``p`` sits on row ``p // columns`` and column
``p % columns`` of the block the line occupies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Literal

import grapheme

from pi.line.terminal import TerminalPort
from pi.line.utils import grapheme_width, visible_width

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_CURSOR_UP_FMT = "\x1b[{}A"
_CURSOR_DOWN_FMT = "\x1b[{}B"
_CURSOR_FORWARD_FMT = "\x1b[{}C"
_CURSOR_BACK_FMT = "\x1b[{}D"
_CLEAR_TO_SCREEN_END = "\x1b[J"
_CLEAR_SCREEN = "\x1b[2J\x1b[H"

# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

RefreshMode = Literal["moveOnly", "redrawFrom", "redrawAll"]

MOVE_ONLY: RefreshMode = "moveOnly"
REDRAW_FROM: RefreshMode = "redrawFrom"
REDRAW_ALL: RefreshMode = "redrawAll"


@dataclass(frozen=True)
class DisplayState:
    """What is currently on screen after the prompt."""

    text: str = ""
    cursor: int = 0


@dataclass(frozen=True)
class CursorFrame:
    row: int
    col: int


def cursor_frame(prompt_width: int, text: str, cursor: int, columns: int) -> CursorFrame:
    """Screen row and column of *cursor*, relative to the prompt's first cell."""
    offset = prompt_width + visible_width(text[:cursor])
    columns = max(1, columns)
    return CursorFrame(offset // columns, offset % columns)


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------


class Renderer:
    """Keeps the terminal in step with one prompt and its text.

    ``refresh`` is the only way text reaches the screen. Each call either
    moves the cursor (``"moveOnly"``), rewrites the line from a text offset
    onward (``"redrawFrom"``) or rewrites prompt and text (``"redrawAll"``).
    Redraws pad over characters left behind by a longer previous line and end
    a line that fills its last row exactly with a newline, so the row under
    the cursor always exists.
    """

    def __init__(
        self,
        port: TerminalPort,
        prompt: str,
        prompt_style: Callable[[str], str] | None = None,
    ) -> None:
        self._port = port
        self.prompt = prompt
        self.prompt_style = prompt_style
        self.prompt_width = visible_width(prompt)
        self.columns = 1
        self.display = DisplayState()
        self._drawn = False
        self.update_size()

    @property
    def drawn(self) -> bool:
        return self._drawn

    def update_size(self) -> None:
        _, columns = self._port.screen_size()
        self.columns = max(1, columns)

    def reset(self) -> None:
        """Forget the line; the next refresh starts at the current cursor column 0."""
        self.display = DisplayState()
        self._drawn = False

    # -- geometry -----------------------------------------------------------

    def cell(self, text: str, index: int) -> int:
        return self.prompt_width + visible_width(text[:index])

    def frame(self, text: str, cursor: int) -> CursorFrame:
        return cursor_frame(self.prompt_width, text, cursor, self.columns)

    def index_at_cell(self, text: str, cell: int) -> int:
        """Largest grapheme boundary in *text* whose cell does not exceed *cell*."""
        position = self.prompt_width
        index = 0
        for cluster in grapheme.graphemes(text):
            width = grapheme_width(cluster)
            if position + width > cell:
                break
            position += width
            index += len(cluster)
        return index

    def vertical_target(self, text: str, cursor: int, rows: int, force: bool = False) -> int | None:
        """Text offset one wrapped row above (``rows < 0``) or below the cursor.

        Returns ``None`` when there is no such row. Unless *force* is set the
        cursor at the very end of the text never moves vertically, which
        leaves Up and Down free to browse history there.
        """
        if not force and cursor == len(text):
            return None
        columns = self.columns
        here = self.frame(text, cursor)
        if rows < 0:
            if here.row == 0:
                return None
            return self.index_at_cell(text, max(self.prompt_width, (here.row - 1) * columns + here.col))
        if here.row == self.frame(text, len(text)).row:
            return None
        target = self.index_at_cell(text, (here.row + 1) * columns + here.col)
        if target >= len(text) and not force:
            target = max(0, len(text) - 1)
        return target

    # -- drawing ------------------------------------------------------------

    def refresh(
        self,
        text: str,
        cursor: int,
        mode: RefreshMode = REDRAW_ALL,
        offset: int = 0,
    ) -> DisplayState:
        """Bring the screen in line with *text* and *cursor*.

        ``"redrawFrom"`` rewrites ``text[offset:]``; the caller guarantees
        that ``text[:offset]`` is unchanged on screen.
        """
        cursor = max(0, min(cursor, len(text)))
        if not self._drawn and mode != REDRAW_ALL:
            mode = REDRAW_ALL

        old = self.display
        here = self.cell(old.text, old.cursor) if self._drawn else 0
        target = self.cell(text, cursor)

        if mode == MOVE_ONLY:
            logger.debug("refresh moveOnly %d -> %d", here, target)
            self._port.write(self._motion(here, target))
            self.display = DisplayState(text, cursor)
            return self.display

        old_end = self.cell(old.text, len(old.text)) if self._drawn else 0
        parts: list[str] = []
        if mode == REDRAW_FROM:
            offset = max(0, min(offset, len(text)))
            parts.append(self._motion(here, self.cell(text, offset)))
            parts.append(text[offset:])
        else:
            parts.append(self._rows_up(here // self.columns) + "\r")
            prompt = self.prompt_style(self.prompt) if self.prompt_style else self.prompt
            parts.append(prompt + text)

        end = self.cell(text, len(text))
        written = end
        if old_end > end:
            parts.append(" " * (old_end - end))
            written = old_end
        if written > 0 and written % self.columns == 0:
            parts.append("\n")
        parts.append(self._motion(written, target))

        logger.debug(
            "refresh %s offset=%d end=%d old_end=%d cursor=%d columns=%d",
            mode, offset, end, old_end, target, self.columns,
        )
        self._port.show_cursor(False)
        self._port.write("".join(parts))
        self._port.show_cursor(True)

        self._drawn = True
        self.display = DisplayState(text, cursor)
        return self.display

    def leave_line(self, suffix: str = "") -> None:
        """Put the cursor at column 0 of the row below the line's end.

        *suffix* is written after the text first, as in ``^C``.
        """
        if self._drawn:
            text = self.display.text
            end = self.cell(text, len(text))
            out = self._motion(self.cell(text, self.display.cursor), end)
            if suffix or end == 0 or end % self.columns:
                out += suffix + "\n"
            self._port.write(out)
        self.reset()

    def erase(self) -> None:
        """Blank the prompt and line, leaving the cursor where the prompt began."""
        if self._drawn:
            here = self.cell(self.display.text, self.display.cursor)
            self._port.write(self._rows_up(here // self.columns) + "\r" + _CLEAR_TO_SCREEN_END)
        self.reset()

    def resize(self) -> DisplayState:
        """Redraw from scratch with freshly queried geometry."""
        state = self.display
        self.erase()
        self.update_size()
        logger.debug("resize to %d columns", self.columns)
        return self.refresh(state.text, state.cursor)

    def clear_screen(self) -> DisplayState:
        state = self.display
        self._port.write(_CLEAR_SCREEN)
        self.reset()
        return self.refresh(state.text, state.cursor)

    # -- relative motion ----------------------------------------------------

    def _rows_up(self, rows: int) -> str:
        return _CURSOR_UP_FMT.format(rows) if rows > 0 else ""

    def _motion(self, frm: int, to: int) -> str:
        columns = self.columns
        rows = to // columns - frm // columns
        cols = to % columns - frm % columns
        out = ""
        if rows < 0:
            out += _CURSOR_UP_FMT.format(-rows)
        elif rows > 0:
            out += _CURSOR_DOWN_FMT.format(rows)
        if cols < 0:
            out += _CURSOR_BACK_FMT.format(-cols)
        elif cols > 0:
            out += _CURSOR_FORWARD_FMT.format(cols)
        return out
