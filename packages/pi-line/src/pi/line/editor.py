"""Interactive line editor.

``LineEditor.readline`` runs the read loop: decode a key, look up its action,
mutate the line buffer, and let the renderer bring the screen up to date.
History search and completion selection run as nested reads on an explicit
stack of :class:`ReadContext` objects. A nested read borrows the terminal and
the clip register and always finishes before the read that started it
resumes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Literal

from pi.line.clip_register import ClipRegister
from pi.line.completion import CompletionProvider, CompletionSet, format_candidates, format_hint
from pi.line.history import History
from pi.line.keybindings import SEARCH_HELP, EditorAction, action_for, help_lines
from pi.line.keys import KeyDecoder, KeyEvent
from pi.line.line_buffer import DEFAULT_DELIMITERS, LineBuffer
from pi.line.renderer import MOVE_ONLY, REDRAW_ALL, REDRAW_FROM, Renderer
from pi.line.terminal import ProcessTerminal, TerminalPort
from pi.line.utils import previous_grapheme_length, visible_width

logger = logging.getLogger(__name__)

ReadStatus = Literal["accepted", "interrupted", "eof", "rejected"]

EditorMode = Literal["editing", "historySearch", "completionPick", "keyboardDebug", "done"]

PAGING_HINT = "*** Press <Space> or <Enter> to continue . . ."

_CTRL_C = 0x03
_CONTINUE_KEYS = (0x20, 0x0D, 0x0A)


def _dim(text: str) -> str:
    return f"\x1b[2m{text}\x1b[22m"


# ---------------------------------------------------------------------------
# Public data types
# ---------------------------------------------------------------------------


@dataclass
class ReadResult:
    """Outcome of one read.

    ``text`` is only meaningful when ``accepted`` is true; every other status
    returns an empty string.
    """

    text: str
    accepted: bool
    status: ReadStatus


@dataclass
class EditorOptions:
    """Session-wide editor settings.

    Attributes:
        word_delimiters: Characters that separate words for word motion, cuts
            and case changes.
        escape_combo: Treat ``ESC ESC <key>`` as alt+key. When off, a lone
            ESC aborts the read.
        prompt_style: Applied to the prompt text when it is drawn.
        history_search_max: Most matches listed by a history search.
        history_style: Applied to history lines listed by a search.
        paging: Pause long listings after every screenful.
    """

    word_delimiters: str = DEFAULT_DELIMITERS
    escape_combo: bool = True
    prompt_style: Callable[[str], str] | None = None
    history_search_max: int = 20
    history_style: Callable[[str], str] | None = _dim
    paging: bool = True


@dataclass
class ReadContext:
    """State of one read on the editor's stack."""

    prompt: str
    buffer: LineBuffer
    renderer: Renderer
    initial: str = ""
    choices: tuple[str, ...] = ()
    edit_only: bool = False
    clear_on_exit: bool = False
    mode: EditorMode = "editing"
    history_index: int = 0
    saved_input: str | None = None
    search_armed: bool = True
    status: ReadStatus | None = None
    depth: int = field(default=0, compare=False)


# ---------------------------------------------------------------------------
# Line editor
# ---------------------------------------------------------------------------


class LineEditor:
    """Readline-style editor session.

    One editor owns a terminal port, a history, an optional completion
    provider and the clip register shared by all of its reads.
    """

    def __init__(
        self,
        port: TerminalPort | None = None,
        *,
        history: History | None = None,
        completer: CompletionProvider | None = None,
        options: EditorOptions | None = None,
    ) -> None:
        self.port: TerminalPort = port if port is not None else ProcessTerminal()
        self.history = history if history is not None else History()
        self.completer = completer
        self.options = options if options is not None else EditorOptions()
        self.clip = ClipRegister()
        self.resize_pending = False

        self._decoder = KeyDecoder(self.port)
        self._stack: list[ReadContext] = []
        self._handlers: dict[EditorAction, Callable[[ReadContext, KeyEvent], None]] = {
            "showHelp": self._show_help,
            "keyboardDebug": self._keyboard_debug,
            "clearScreen": self._clear_screen,
            "cursorLeft": lambda ctx, _: self._edit(ctx, ctx.buffer.move_left),
            "cursorRight": lambda ctx, _: self._edit(ctx, ctx.buffer.move_right),
            "cursorUp": self._cursor_up,
            "cursorDown": self._cursor_down,
            "lineUp": lambda ctx, _: self._move_line(ctx, -1),
            "lineDown": lambda ctx, _: self._move_line(ctx, 1),
            "cursorWordLeft": lambda ctx, _: self._edit(ctx, ctx.buffer.move_word_left),
            "cursorWordRight": lambda ctx, _: self._edit(ctx, ctx.buffer.move_word_right),
            "cursorLineStart": lambda ctx, _: self._edit(ctx, ctx.buffer.move_home),
            "cursorLineEnd": lambda ctx, _: self._edit(ctx, ctx.buffer.move_end),
            "deleteCharBackward": lambda ctx, _: self._edit(ctx, ctx.buffer.delete_backward),
            "deleteCharForward": lambda ctx, _: self._edit(ctx, ctx.buffer.delete_forward),
            "deleteCharOrEof": self._delete_or_eof,
            "upperWord": lambda ctx, _: self._edit(ctx, ctx.buffer.upper_word),
            "lowerWord": lambda ctx, _: self._edit(ctx, ctx.buffer.lower_word),
            "capitalizeWord": lambda ctx, _: self._edit(ctx, ctx.buffer.capitalize_word),
            "trimWhitespace": lambda ctx, _: self._edit(ctx, ctx.buffer.trim_whitespace),
            "transpose": lambda ctx, _: self._edit(ctx, ctx.buffer.transpose),
            "cutToLineEnd": lambda ctx, _: self._edit(ctx, ctx.buffer.cut_to_end),
            "cutToLineStart": lambda ctx, _: self._edit(ctx, ctx.buffer.cut_to_start),
            "cutLine": lambda ctx, _: self._edit(ctx, ctx.buffer.cut_line),
            "cutWordBackward": lambda ctx, _: self._edit(ctx, ctx.buffer.cut_word_left),
            "cutToWhitespaceBackward": lambda ctx, _: self._edit(ctx, ctx.buffer.cut_to_whitespace_left),
            "cutWordForward": lambda ctx, _: self._edit(ctx, ctx.buffer.cut_word_right),
            "paste": lambda ctx, _: self._edit(ctx, ctx.buffer.paste),
            "complete": lambda ctx, _: self._complete(ctx, list_all=False),
            "listCompletions": lambda ctx, _: self._complete(ctx, list_all=True),
            "historyFirst": self._history_first,
            "historyLast": self._history_last,
            "historySearch": self._history_search_key,
            "showHistory": self._show_history,
            "clearHistory": self._clear_history,
            "submit": lambda ctx, _: self._finish(ctx, "accepted"),
            "interrupt": lambda ctx, _: self._finish(ctx, "interrupted", suffix="^C"),
            "abort": lambda ctx, _: self._finish(ctx, "interrupted"),
            "revertLine": self._revert_line,
            "suspend": self._suspend,
        }

    # -- configuration --------------------------------------------------------

    def set_delimiters(self, delimiters: str) -> None:
        """Set the word delimiters; an empty string keeps the current set."""
        if delimiters:
            self.options.word_delimiters = delimiters

    def allow_escape_combo(self, allow: bool) -> None:
        self.options.escape_combo = allow

    def set_prompt_style(self, style: Callable[[str], str] | None) -> None:
        self.options.prompt_style = style

    def history_setup(self, no_search_repeats: bool) -> None:
        self.history.no_search_repeats = no_search_repeats

    def set_history_search_max(self, count: int) -> None:
        self.options.history_search_max = count

    def set_paging(self, enabled: bool) -> bool:
        """Enable or disable paging of long listings; returns the previous setting."""
        previous = self.options.paging
        self.options.paging = enabled
        return previous

    def set_completer(self, completer: CompletionProvider | None) -> None:
        self.completer = completer

    @property
    def depth(self) -> int:
        """Number of reads currently in progress."""
        return len(self._stack)

    # -- public reads ---------------------------------------------------------

    def readline(self, prompt: str, initial: str = "") -> ReadResult:
        """Read one line with full editing, history and completion.

        When the input is not an interactive terminal, one line is read
        verbatim with no editing.
        """
        if not self.port.is_interactive():
            return self._read_plain()
        with self._session():
            return self._read(prompt, initial)

    def read_choice(self, prompt: str, choices: Iterable[str]) -> ReadResult:
        """Read one of *choices*.

        Typing that stops being a prefix of every choice ends the read with
        status ``"rejected"`` and leaves the typed characters in the input.
        """
        choices = tuple(choices)
        if not self.port.is_interactive():
            result = self._read_plain()
            if result.accepted and result.text not in choices:
                return ReadResult("", False, "rejected")
            return result
        with self._session():
            return self._read(prompt, choices=choices, edit_only=True)

    # -- read loop ------------------------------------------------------------

    def _read_plain(self) -> ReadResult:
        line = self.port.read_line()
        if line is None:
            return ReadResult("", False, "eof")
        return ReadResult(line.rstrip("\r\n"), True, "accepted")

    def _session(self) -> _Session:
        return _Session(self)

    def _on_resize(self) -> None:
        self.resize_pending = True

    def _read(
        self,
        prompt: str,
        initial: str = "",
        *,
        choices: tuple[str, ...] = (),
        edit_only: bool = False,
        clear_on_exit: bool = False,
    ) -> ReadResult:
        ctx = ReadContext(
            prompt=prompt,
            buffer=LineBuffer(initial, delimiters=self.options.word_delimiters, clip=self.clip),
            renderer=Renderer(self.port, prompt, self.options.prompt_style),
            initial=initial,
            choices=choices,
            edit_only=edit_only,
            clear_on_exit=clear_on_exit,
            history_index=len(self.history),
            depth=len(self._stack),
        )
        self._push(ctx)
        try:
            ctx.renderer.refresh(ctx.buffer.text, ctx.buffer.cursor)
            while ctx.status is None:
                try:
                    event = self._decoder.next_key(self.options.escape_combo)
                    if self.resize_pending:
                        self.resize_pending = False
                        ctx.renderer.resize()
                    self._dispatch(ctx, event)
                except EOFError:
                    logger.debug("end of input during read %r", ctx.prompt)
                    self._finish(ctx, "eof")
                    break
                if ctx.status is None and ctx.choices:
                    self._check_choice(ctx)
        finally:
            self._pop(ctx)

        if ctx.status == "accepted":
            return ReadResult(ctx.buffer.text, True, "accepted")
        return ReadResult("", False, ctx.status or "interrupted")

    def _push(self, ctx: ReadContext) -> None:
        logger.debug("begin read %r at depth %d", ctx.prompt, len(self._stack))
        self._stack.append(ctx)

    def _pop(self, ctx: ReadContext) -> None:
        top = self._stack.pop()
        if top is not ctx:
            raise RuntimeError("nested reads finished out of order")
        logger.debug("end read %r with status %s", ctx.prompt, ctx.status)

    def _dispatch(self, ctx: ReadContext, event: KeyEvent) -> None:
        action = action_for(event.key)
        if action is not None:
            self._handlers[action](ctx, event)
            return

        ctx.search_armed = not ctx.edit_only
        if event.char is not None and not event.escaped:
            ctx.buffer.insert(event.char)
            ctx.saved_input = None
            self._sync(ctx)
        elif event.escaped and not self.options.escape_combo:
            self._finish(ctx, "interrupted")

    def _check_choice(self, ctx: ReadContext) -> None:
        text = ctx.buffer.text
        if not text:
            return
        if text in ctx.choices:
            self._finish(ctx, "accepted")
            return
        if any(choice.startswith(text) for choice in ctx.choices):
            return
        for byte in reversed(text.encode("utf-8")):
            self.port.push_back(byte)
        self._finish(ctx, "rejected")

    def _finish(self, ctx: ReadContext, status: ReadStatus, suffix: str = "") -> None:
        ctx.status = status
        ctx.mode = "done"
        if ctx.clear_on_exit:
            ctx.renderer.erase()
        else:
            ctx.renderer.leave_line(suffix)

        if status == "accepted" and not ctx.choices and not ctx.edit_only and ctx.buffer.text:
            self.history.append(ctx.buffer.text)

    # -- screen sync ----------------------------------------------------------

    def _sync(self, ctx: ReadContext) -> None:
        """Redraw as little as possible to show the buffer's current state."""
        renderer, buf = ctx.renderer, ctx.buffer
        if not renderer.drawn:
            renderer.refresh(buf.text, buf.cursor, REDRAW_ALL)
            return

        old = renderer.display.text
        if old == buf.text:
            renderer.refresh(buf.text, buf.cursor, MOVE_ONLY)
            return

        old_rows = renderer.cell(old, len(old)) // renderer.columns
        new_rows = renderer.cell(buf.text, len(buf.text)) // renderer.columns
        if old_rows != new_rows:
            renderer.refresh(buf.text, buf.cursor, REDRAW_ALL)
            return

        offset = 0
        limit = min(len(old), len(buf.text))
        while offset < limit and old[offset] == buf.text[offset]:
            offset += 1
        offset -= previous_grapheme_length(buf.text, offset)
        renderer.refresh(buf.text, buf.cursor, REDRAW_FROM, offset)

    def _redraw_all(self, ctx: ReadContext) -> None:
        """Draw the line afresh below whatever was printed since it was left."""
        ctx.renderer.reset()
        ctx.renderer.update_size()
        ctx.renderer.refresh(ctx.buffer.text, ctx.buffer.cursor)

    def _edit(self, ctx: ReadContext, operation: Callable[[], object]) -> None:
        operation()
        self._sync(ctx)

    def _print_lines(self, lines: list[str]) -> bool:
        """Print *lines*, pausing after each screenful when paging is on.

        Returns ``False`` if the user stopped the listing early.
        """
        rows, columns = self.port.screen_size()
        printed = 0
        for i, line in enumerate(lines):
            self.port.write(line + "\n")
            if not self.options.paging or i == len(lines) - 1:
                continue
            printed += max(1, (visible_width(line) + columns - 1) // columns)
            if printed < rows - 1:
                continue
            self.port.write(PAGING_HINT)
            byte = self._decoder.read_byte()
            self.port.write("\r" + " " * len(PAGING_HINT) + "\r")
            printed = 0
            if byte not in _CONTINUE_KEYS:
                return False
        return True

    # -- misc commands --------------------------------------------------------

    def _show_help(self, ctx: ReadContext, event: KeyEvent) -> None:
        ctx.renderer.leave_line()
        self._print_lines(SEARCH_HELP if ctx.edit_only else help_lines())
        self._redraw_all(ctx)

    def _keyboard_debug(self, ctx: ReadContext, event: KeyEvent) -> None:
        ctx.mode = "keyboardDebug"
        ctx.renderer.leave_line()
        self.port.write("Enter keyboard debug mode, <Ctrl-C> to exit debug\n")
        while True:
            byte = self._decoder.read_byte()
            if byte == _CTRL_C:
                break
            shown = chr(byte) if 0x20 <= byte < 0x7F else " "
            self.port.write(f"{byte:3d} 0x{byte:02x} {shown}\n")
        ctx.mode = "editing"
        self._redraw_all(ctx)

    def _clear_screen(self, ctx: ReadContext, event: KeyEvent) -> None:
        ctx.renderer.clear_screen()

    def _suspend(self, ctx: ReadContext, event: KeyEvent) -> None:
        self.port.suspend()
        self._redraw_all(ctx)

    def _revert_line(self, ctx: ReadContext, event: KeyEvent) -> None:
        ctx.buffer.set_text(ctx.initial)
        ctx.saved_input = None
        self._sync(ctx)

    def _delete_or_eof(self, ctx: ReadContext, event: KeyEvent) -> None:
        if not ctx.buffer.text:
            self._finish(ctx, "eof")
            return
        self._edit(ctx, ctx.buffer.delete_forward)

    # -- vertical motion and history browsing ---------------------------------

    def _move_line(self, ctx: ReadContext, rows: int, force: bool = True) -> bool:
        buf = ctx.buffer
        target = ctx.renderer.vertical_target(buf.text, buf.cursor, rows, force=force)
        if target is None:
            return False
        buf.cursor = target
        self._sync(ctx)
        return True

    def _cursor_up(self, ctx: ReadContext, event: KeyEvent) -> None:
        buf = ctx.buffer
        if (
            ctx.search_armed
            and not ctx.edit_only
            and len(self.history)
            and 0 < buf.cursor == len(buf.text)
        ):
            ctx.search_armed = False
            self._history_search(ctx, buf.text)
            return
        ctx.search_armed = False

        if self._move_line(ctx, -1, force=False):
            return
        if ctx.edit_only or not len(self.history):
            self.port.beep()
            return
        self._browse(ctx, -1)

    def _cursor_down(self, ctx: ReadContext, event: KeyEvent) -> None:
        if self._move_line(ctx, 1, force=False):
            return
        if ctx.edit_only or not len(self.history):
            self.port.beep()
            return
        self._browse(ctx, 1)

    def _browse(self, ctx: ReadContext, step: int) -> None:
        """Step through history as a ring whose extra slot is the pre-browse text."""
        count = len(self.history)
        if ctx.saved_input is None:
            ctx.saved_input = ctx.buffer.text

        index = min(ctx.history_index, count)
        if step < 0:
            index = index - 1 if index > 0 else count
        else:
            index = index + 1 if index < count else 0
        self._show_history_entry(ctx, index)

    def _show_history_entry(self, ctx: ReadContext, index: int) -> None:
        ctx.history_index = index
        if index < len(self.history):
            ctx.buffer.set_text(self.history.get(index))
        else:
            ctx.buffer.set_text(ctx.saved_input or "")
        self._sync(ctx)

    def _history_first(self, ctx: ReadContext, event: KeyEvent) -> None:
        if ctx.edit_only or not len(self.history):
            return
        if ctx.saved_input is None:
            ctx.saved_input = ctx.buffer.text
        self._show_history_entry(ctx, 0)

    def _history_last(self, ctx: ReadContext, event: KeyEvent) -> None:
        if ctx.edit_only or not len(self.history):
            return
        if ctx.saved_input is None:
            ctx.saved_input = ctx.buffer.text
        self._show_history_entry(ctx, len(self.history))

    def _show_history(self, ctx: ReadContext, event: KeyEvent) -> None:
        if ctx.edit_only or not len(self.history):
            return
        ctx.renderer.leave_line()
        self._print_lines([f"{i:4d}  {entry}" for i, entry in enumerate(self.history)])
        self._redraw_all(ctx)

    def _clear_history(self, ctx: ReadContext, event: KeyEvent) -> None:
        if ctx.edit_only or not len(self.history):
            return
        ctx.renderer.leave_line()
        self.port.write("!!! Confirm to clear history [y]: ")
        if self._decoder.read_byte() == ord("y"):
            self.port.write("\nHistory cleared!")
            self.history.clear()
            ctx.history_index = 0
            ctx.saved_input = None
        self.port.write("\n")
        self._redraw_all(ctx)

    # -- history search -------------------------------------------------------

    def _history_search_key(self, ctx: ReadContext, event: KeyEvent) -> None:
        if ctx.edit_only or not len(self.history):
            self.port.beep()
            return
        self._history_search(ctx, ctx.buffer.text)

    def _history_search(self, ctx: ReadContext, pattern: str) -> None:
        ctx.mode = "historySearch"
        ctx.renderer.leave_line()
        entry = self._search_history(pattern)
        ctx.mode = "editing"
        if entry is not None:
            ctx.buffer.set_text(entry)
            ctx.saved_input = None
        else:
            ctx.buffer.move_end()
        self._redraw_all(ctx)

    def _search_history(self, pattern: str) -> str | None:
        """List history lines containing *pattern* and let the user pick one.

        An empty *pattern* is asked for first. A single match is chosen
        without asking.
        """
        if not pattern:
            result = self._read("History Search: ", edit_only=True, clear_on_exit=True)
            if not result.accepted or not result.text:
                return None
            pattern = result.text

        matches = self.history.search(pattern, self.options.history_search_max, forward=False)
        if not matches:
            return None

        style = self.options.history_style
        self._print_lines([
            f"{key:>4} " + (style(self.history.get(index)) if style else self.history.get(index))
            for key, index in matches.items()
        ])
        if len(matches) == 1:
            return self.history.get(next(iter(matches.values())))

        result = self._read(
            "Input history id: ", choices=tuple(matches), edit_only=True, clear_on_exit=True
        )
        if result.accepted and result.text in matches:
            return self.history.get(matches[result.text])
        return None

    # -- completion -----------------------------------------------------------

    def _complete(self, ctx: ReadContext, list_all: bool) -> None:
        if ctx.edit_only or self.completer is None:
            return
        buf = ctx.buffer
        completions = self.completer(buf.text, buf.cursor)
        if completions is None:
            return

        span_end = completions.end
        if completions.candidates and not list_all:
            common = completions.common_prefix()
            buf.replace(completions.start, completions.end, common)
            span_end = completions.start + len(common)
            self._sync(ctx)

        if len(completions) == 1 and not list_all:
            return
        if not completions.candidates and not completions.hint:
            return

        ctx.mode = "completionPick"
        ctx.renderer.leave_line()
        choice = self._pick_completion(completions)
        ctx.mode = "editing"
        if choice is not None:
            buf.replace(completions.start, span_end, completions.replacement(choice))
        self._redraw_all(ctx)

    def _pick_completion(self, completions: CompletionSet) -> int | None:
        lines: list[str] = []
        hint = format_hint(completions)
        if hint:
            lines.append(hint)
        _, columns = self.port.screen_size()
        listing, keys = format_candidates(completions, columns)
        lines.extend(listing)
        self._print_lines(lines)
        if not keys:
            return None

        result = self._read(
            "Input match id: ", choices=tuple(keys), edit_only=True, clear_on_exit=True
        )
        if result.accepted and result.text in keys:
            return keys[result.text]
        return None


class _Session:
    """Holds the terminal in raw mode for the outermost read."""

    def __init__(self, editor: LineEditor) -> None:
        self._editor = editor
        self._owner = False

    def __enter__(self) -> _Session:
        if not self._editor.depth:
            self._owner = True
            self._editor.resize_pending = False
            self._editor.port.start(self._editor._on_resize)
        return self

    def __exit__(self, *exc: object) -> None:
        if self._owner:
            self._editor.port.stop()
