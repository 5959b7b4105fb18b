"""Virtual terminal for testing -- implements the TerminalPort protocol in-memory.

``VirtualTerminal`` satisfies ``pi.line.terminal.TerminalPort`` without any
real I/O: input comes from a scripted byte queue and all output is captured
for assertions. ``ScreenEmulator`` replays captured output onto a grid of
cells so tests can assert on what a user would actually see.
"""

from __future__ import annotations

import re
from typing import Callable

import wcwidth

_CSI_RE = re.compile(r"\x1b\[([?0-9;]*)([A-Za-z])")


class VirtualTerminal:
    """In-memory terminal that records all writes for test inspection.

    Parameters
    ----------
    rows:
        Number of terminal rows (height).
    columns:
        Number of terminal columns (width).
    interactive:
        Value reported by ``is_interactive``.
    """

    def __init__(self, rows: int = 24, columns: int = 80, interactive: bool = True) -> None:
        self._rows = rows
        self._columns = columns
        self._interactive = interactive
        self._input: list[int | tuple[int | None, int | None]] = []
        self._pushback: list[int] = []
        self._buffer: list[str] = []
        self._started = False
        self._resize_handler: Callable[[], None] | None = None
        self._cursor_visible = True
        self.beeps = 0
        self.suspends = 0
        self.start_count = 0

    # -- TerminalPort protocol: size ----------------------------------------

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def columns(self) -> int:
        return self._columns

    def screen_size(self) -> tuple[int, int]:
        return self._rows, self._columns

    def is_interactive(self) -> bool:
        return self._interactive

    # -- TerminalPort protocol: lifecycle -----------------------------------

    @property
    def started(self) -> bool:
        return self._started

    def start(self, on_resize: Callable[[], None]) -> None:
        self._resize_handler = on_resize
        self._started = True
        self.start_count += 1

    def stop(self) -> None:
        self._started = False
        self._resize_handler = None

    def suspend(self) -> None:
        self.suspends += 1

    # -- TerminalPort protocol: input ---------------------------------------

    def read_byte(self) -> int | None:
        if self._pushback:
            return self._pushback.pop()
        while self._input:
            item = self._input.pop(0)
            if isinstance(item, tuple):
                self.simulate_resize(*item)
                continue
            return item
        return None

    def push_back(self, byte: int) -> None:
        self._pushback.append(byte)

    def read_line(self) -> str | None:
        data = bytearray()
        while True:
            byte = self.read_byte()
            if byte is None:
                break
            data.append(byte)
            if byte == 0x0A:
                break
        return data.decode("utf-8") if data else None

    # -- TerminalPort protocol: output --------------------------------------

    def write(self, data: str) -> None:
        """Append *data* to the internal buffer."""
        self._buffer.append(data)

    def show_cursor(self, show: bool) -> None:
        self._cursor_visible = show
        self.write("\x1b[?25h" if show else "\x1b[?25l")

    def beep(self) -> None:
        self.beeps += 1

    # -- Test helpers -------------------------------------------------------

    def feed(self, data: str | bytes) -> None:
        """Queue *data* as keyboard input."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._input.extend(data)

    def feed_resize(self, rows: int | None = None, columns: int | None = None) -> None:
        """Queue a resize that fires once all input fed so far has been read."""
        self._input.append((rows, columns))

    @property
    def pending_input(self) -> bytes:
        """Bytes not yet read, pushed-back bytes first."""
        queued = [b for b in self._input if isinstance(b, int)]
        return bytes(list(reversed(self._pushback)) + queued)

    @property
    def output(self) -> str:
        """Return everything written to the terminal as a single string."""
        return "".join(self._buffer)

    @property
    def write_count(self) -> int:
        return len(self._buffer)

    def clear_buffer(self) -> None:
        """Discard all recorded output."""
        self._buffer.clear()

    def simulate_resize(self, rows: int | None = None, columns: int | None = None) -> None:
        """Change terminal dimensions and fire the resize callback.

        If *rows* or *columns* is ``None`` the corresponding dimension
        is left unchanged.
        """
        if rows is not None:
            self._rows = rows
        if columns is not None:
            self._columns = columns
        if self._resize_handler is not None:
            self._resize_handler()

    def screen(self) -> ScreenEmulator:
        """Replay all output so far onto a fresh emulator of the current width."""
        emulator = ScreenEmulator(self._columns)
        emulator.feed(self.output)
        return emulator


class ScreenEmulator:
    """Minimal VT100 model with an unbounded number of rows.

    Output ``"\\n"`` is treated as CR+LF, matching a tty with ONLCR set.
    Writing into the last column defers the wrap until the next printable
    character, as xterm does. Cursor-down stops at the last row written so
    far, which stands in for the bottom of the screen. Cell widths come from
    ``wcwidth``; zero-width marks join the cell before them.
    """

    def __init__(self, columns: int) -> None:
        self.columns = columns
        self.grid: list[list[str]] = [[]]
        self.row = 0
        self.col = 0
        self._pending_wrap = False

    def feed(self, data: str) -> None:
        i = 0
        while i < len(data):
            ch = data[i]
            if ch == "\x1b":
                match = _CSI_RE.match(data, i)
                if match is None:
                    i += 1
                    continue
                self._csi(match.group(1), match.group(2))
                i = match.end()
                continue
            if ch == "\r":
                self.col = 0
                self._pending_wrap = False
            elif ch == "\n":
                self._line_feed()
            elif ch == "\b":
                self.col = max(0, self.col - 1)
                self._pending_wrap = False
            elif ch >= " ":
                self._put(ch)
            i += 1

    # -- inspection -----------------------------------------------------------

    @property
    def lines(self) -> list[str]:
        """Screen rows with trailing blanks removed."""
        return ["".join(row).rstrip() for row in self.grid]

    @property
    def text(self) -> str:
        return "\n".join(self.lines).rstrip("\n")

    @property
    def cursor(self) -> tuple[int, int]:
        return self.row, self.col

    # -- private --------------------------------------------------------------

    def _ensure_row(self, row: int) -> None:
        while len(self.grid) <= row:
            self.grid.append([])

    def _line_feed(self) -> None:
        self.row += 1
        self.col = 0
        self._pending_wrap = False
        self._ensure_row(self.row)

    def _put(self, ch: str) -> None:
        width = wcwidth.wcwidth(ch)
        if width == 0:
            self._attach(ch)
            return
        width = 2 if width == 2 else 1
        if self._pending_wrap or self.col + width > self.columns:
            self._line_feed()
        line = self.grid[self.row]
        while len(line) < self.col + width:
            line.append(" ")
        line[self.col] = ch
        if width == 2:
            line[self.col + 1] = ""
        if self.col + width >= self.columns:
            self.col = self.columns - 1
            self._pending_wrap = True
        else:
            self.col += width

    def _attach(self, mark: str) -> None:
        col = self.col if self._pending_wrap else self.col - 1
        line = self.grid[self.row]
        if 0 <= col < len(line):
            line[col] += mark

    def _csi(self, params: str, final: str) -> None:
        self._pending_wrap = False
        if params.startswith("?") or final == "m":
            return
        n = int(params) if params.isdigit() else 1
        if final == "A":
            self.row = max(0, self.row - n)
        elif final == "B":
            self.row = min(len(self.grid) - 1, self.row + n)
        elif final == "C":
            self.col = min(self.columns - 1, self.col + n)
        elif final == "D":
            self.col = max(0, self.col - n)
        elif final == "H":
            self.row = 0
            self.col = 0
        elif final == "J":
            if params == "2":
                self.grid = [[] for _ in self.grid]
            else:
                del self.grid[self.row + 1:]
                del self.grid[self.row][self.col:]
        elif final == "K":
            del self.grid[self.row][self.col:]
