"""Terminal abstraction for byte-at-a-time raw input.

Provides the ``TerminalPort`` protocol the editor is written against and a
concrete ``ProcessTerminal`` for POSIX ttys built on :mod:`termios` and
:mod:`tty`.
"""

from __future__ import annotations

import logging
import os
import signal
import sys
import termios
import tty
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_HIDE_CURSOR = "\x1b[?25l"
_SHOW_CURSOR = "\x1b[?25h"
_BELL = "\x07"

DEFAULT_SCREEN_SIZE = (24, 160)
"""``(rows, columns)`` used when the real size cannot be determined."""

UNSUPPORTED_TERMS = frozenset({"dumb", "cons25", "emacs"})


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class TerminalPort(Protocol):
    """Byte-level terminal I/O consumed by the line editor.

    ``write`` must translate ``"\\n"`` into a carriage return plus line feed,
    as a tty with output processing enabled does.
    """

    def read_byte(self) -> int | None:
        """Block for the next input byte; ``None`` at end of input."""
        ...

    def push_back(self, byte: int) -> None:
        """Return *byte* to the input; the last byte pushed is read first."""
        ...

    def write(self, data: str) -> None: ...

    def screen_size(self) -> tuple[int, int]:
        """Return ``(rows, columns)``, falling back to :data:`DEFAULT_SCREEN_SIZE`."""
        ...

    def show_cursor(self, show: bool) -> None: ...

    def beep(self) -> None: ...

    def start(self, on_resize: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...

    def is_interactive(self) -> bool: ...

    def read_line(self) -> str | None:
        """Read one cooked line for non-interactive input; ``None`` at EOF."""
        ...

    def suspend(self) -> None: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Terminal port backed by the process's stdin and stdout.

    Raw mode disables echo, canonical input, signal keys and flow control
    but leaves output processing on. Resizes are reported through SIGWINCH.
    Setting ``PI_LINE_WRITE_LOG`` to a path appends every write to that file.
    """

    def __init__(self) -> None:
        self._pushback: list[int] = []
        self._resize_handler: Callable[[], None] | None = None
        self._original_termios: list | None = None
        self._prev_sigwinch_handler: signal.Handlers | None = None
        self._write_log_path: str = os.environ.get("PI_LINE_WRITE_LOG", "")

    # -- capability ---------------------------------------------------------

    def is_interactive(self) -> bool:
        """True when stdin is a tty whose ``TERM`` supports cursor movement."""
        try:
            if not os.isatty(sys.stdin.fileno()):
                return False
        except (ValueError, OSError):
            return False
        term = os.environ.get("TERM", "")
        return term.lower() not in UNSUPPORTED_TERMS

    def screen_size(self) -> tuple[int, int]:
        try:
            size = os.get_terminal_size(sys.stdout.fileno())
        except (ValueError, OSError):
            logger.debug("terminal size query failed, using %s", DEFAULT_SCREEN_SIZE)
            return DEFAULT_SCREEN_SIZE
        if size.lines <= 0 or size.columns <= 0:
            return DEFAULT_SCREEN_SIZE
        return size.lines, size.columns

    # -- start / stop -------------------------------------------------------

    def start(self, on_resize: Callable[[], None]) -> None:
        """Enter raw mode and begin reporting resizes to *on_resize*."""
        self._resize_handler = on_resize
        fd = sys.stdin.fileno()
        self._original_termios = termios.tcgetattr(fd)
        self._enter_raw_mode(fd)

        self._prev_sigwinch_handler = signal.getsignal(signal.SIGWINCH)
        signal.signal(signal.SIGWINCH, self._on_sigwinch)

    def stop(self) -> None:
        """Restore terminal attributes and the previous SIGWINCH handler."""
        if self._prev_sigwinch_handler is not None:
            signal.signal(signal.SIGWINCH, self._prev_sigwinch_handler)
            self._prev_sigwinch_handler = None

        if self._original_termios is not None:
            termios.tcsetattr(sys.stdin.fileno(), termios.TCSADRAIN, self._original_termios)
            self._original_termios = None

        self._resize_handler = None

    def suspend(self) -> None:
        """Stop the process as job control would, resuming in raw mode."""
        fd = sys.stdin.fileno()
        if self._original_termios is not None:
            termios.tcsetattr(fd, termios.TCSADRAIN, self._original_termios)
        os.kill(os.getpid(), signal.SIGSTOP)
        if self._original_termios is not None:
            self._enter_raw_mode(fd)

    # -- input --------------------------------------------------------------

    def read_byte(self) -> int | None:
        if self._pushback:
            return self._pushback.pop()
        data = os.read(sys.stdin.fileno(), 1)
        if not data:
            return None
        return data[0]

    def push_back(self, byte: int) -> None:
        self._pushback.append(byte)

    def read_line(self) -> str | None:
        line = sys.stdin.readline()
        return line if line else None

    # -- output -------------------------------------------------------------

    def write(self, data: str) -> None:
        """Write data to stdout and optionally to the write log."""
        self._raw_write(data)

        if self._write_log_path:
            try:
                with open(self._write_log_path, "a") as f:
                    f.write(data)
            except OSError:
                logger.debug("cannot append to write log %s", self._write_log_path)

    def show_cursor(self, show: bool) -> None:
        self._raw_write(_SHOW_CURSOR if show else _HIDE_CURSOR)

    def beep(self) -> None:
        self._raw_write(_BELL)

    # -- private ------------------------------------------------------------

    def _enter_raw_mode(self, fd: int) -> None:
        tty.setraw(fd)
        attrs = termios.tcgetattr(fd)
        attrs[1] |= termios.OPOST | termios.ONLCR
        termios.tcsetattr(fd, termios.TCSADRAIN, attrs)

    def _on_sigwinch(self, signum: int, frame: object) -> None:
        if self._resize_handler is not None:
            self._resize_handler()

    def _raw_write(self, data: str) -> None:
        try:
            sys.stdout.write(data)
            sys.stdout.flush()
        except OSError:
            logger.debug("write to stdout failed")
