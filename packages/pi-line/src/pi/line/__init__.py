"""pi-line: readline-style line editing for raw-mode terminals."""

# Clip register
from pi.line.clip_register import ClipRegister

# Completion
from pi.line.completion import (
    Candidate,
    CompletionProvider,
    CompletionSet,
    common_prefix,
    format_candidates,
    format_hint,
)

# Editor
from pi.line.editor import (
    EditorMode,
    EditorOptions,
    LineEditor,
    ReadContext,
    ReadResult,
    ReadStatus,
)

# History
from pi.line.history import History

# Keybindings
from pi.line.keybindings import KEYBINDINGS, EditorAction, action_for, help_lines, keys_for

# Keyboard input handling
from pi.line.keys import Key, KeyDecoder, KeyEvent, KeyId, lookup_sequence

# Line buffer
from pi.line.line_buffer import DEFAULT_DELIMITERS, LineBuffer

# Rendering
from pi.line.renderer import (
    MOVE_ONLY,
    REDRAW_ALL,
    REDRAW_FROM,
    CursorFrame,
    DisplayState,
    RefreshMode,
    Renderer,
    cursor_frame,
)

# Terminal interface and implementations
from pi.line.terminal import DEFAULT_SCREEN_SIZE, ProcessTerminal, TerminalPort

# Utilities
from pi.line.utils import visible_width

__all__ = [
    # Clip register
    "ClipRegister",
    # Completion
    "Candidate",
    "CompletionProvider",
    "CompletionSet",
    "common_prefix",
    "format_candidates",
    "format_hint",
    # Editor
    "EditorMode",
    "EditorOptions",
    "LineEditor",
    "ReadContext",
    "ReadResult",
    "ReadStatus",
    # History
    "History",
    # Keybindings
    "KEYBINDINGS",
    "EditorAction",
    "action_for",
    "help_lines",
    "keys_for",
    # Keys
    "Key",
    "KeyDecoder",
    "KeyEvent",
    "KeyId",
    "lookup_sequence",
    # Line buffer
    "DEFAULT_DELIMITERS",
    "LineBuffer",
    # Rendering
    "MOVE_ONLY",
    "REDRAW_ALL",
    "REDRAW_FROM",
    "CursorFrame",
    "DisplayState",
    "RefreshMode",
    "Renderer",
    "cursor_frame",
    # Terminal
    "DEFAULT_SCREEN_SIZE",
    "ProcessTerminal",
    "TerminalPort",
    # Utilities
    "visible_width",
]
