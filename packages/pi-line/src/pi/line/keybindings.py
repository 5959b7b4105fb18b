"""Fixed key bindings for the line editor, plus the help text describing them."""

from __future__ import annotations

from typing import Literal

from pi.line.keys import KeyId

EditorAction = Literal[
    # Misc
    "showHelp",
    "keyboardDebug",
    "clearScreen",
    # Cursor movement
    "cursorLeft",
    "cursorRight",
    "cursorUp",
    "cursorDown",
    "lineUp",
    "lineDown",
    "cursorWordLeft",
    "cursorWordRight",
    "cursorLineStart",
    "cursorLineEnd",
    # Editing
    "deleteCharBackward",
    "deleteCharForward",
    "deleteCharOrEof",
    "upperWord",
    "lowerWord",
    "capitalizeWord",
    "trimWhitespace",
    "transpose",
    # Cut and paste
    "cutToLineEnd",
    "cutToLineStart",
    "cutLine",
    "cutWordBackward",
    "cutToWhitespaceBackward",
    "cutWordForward",
    "paste",
    # Completion
    "complete",
    "listCompletions",
    # History
    "historyFirst",
    "historyLast",
    "historySearch",
    "showHistory",
    "clearHistory",
    # Control
    "submit",
    "interrupt",
    "abort",
    "revertLine",
    "suspend",
]

KEYBINDINGS: dict[EditorAction, list[KeyId]] = {
    # Misc
    "showHelp": ["f1"],
    "keyboardDebug": ["ctrl+^"],
    "clearScreen": ["ctrl+l"],
    # Cursor movement
    "cursorLeft": ["left", "ctrl+b"],
    "cursorRight": ["right", "ctrl+f"],
    "cursorUp": ["up", "ctrl+p"],
    "cursorDown": ["down", "ctrl+n"],
    "lineUp": ["ctrl+up", "alt+up"],
    "lineDown": ["ctrl+down", "alt+down"],
    "cursorWordLeft": ["alt+b", "ctrl+left", "alt+left"],
    "cursorWordRight": ["alt+f", "ctrl+right", "alt+right"],
    "cursorLineStart": ["home", "ctrl+a"],
    "cursorLineEnd": ["end", "ctrl+e"],
    # Editing
    "deleteCharBackward": ["backspace"],
    "deleteCharForward": ["delete"],
    "deleteCharOrEof": ["ctrl+d"],
    "upperWord": ["alt+u"],
    "lowerWord": ["alt+l"],
    "capitalizeWord": ["alt+c"],
    "trimWhitespace": ["alt+\\"],
    "transpose": ["ctrl+t"],
    # Cut and paste
    "cutToLineEnd": ["ctrl+k", "ctrl+end", "alt+end"],
    "cutToLineStart": ["ctrl+u", "ctrl+home", "alt+home"],
    "cutLine": ["ctrl+x"],
    "cutWordBackward": ["alt+backspace", "ctrl+backspace"],
    "cutToWhitespaceBackward": ["ctrl+w"],
    "cutWordForward": ["alt+d", "alt+delete", "ctrl+delete"],
    "paste": ["ctrl+y", "ctrl+v", "insert"],
    # Completion
    "complete": ["tab"],
    "listCompletions": ["alt+=", "alt+?"],
    # History
    "historyFirst": ["pageUp", "alt+<"],
    "historyLast": ["pageDown", "alt+>"],
    "historySearch": ["ctrl+r", "ctrl+s", "f4"],
    "showHistory": ["f2"],
    "clearHistory": ["f3"],
    # Control
    "submit": ["enter"],
    "interrupt": ["ctrl+c"],
    "abort": ["ctrl+g"],
    "revertLine": ["alt+r"],
    "suspend": ["ctrl+z"],
}

_KEY_TO_ACTION: dict[KeyId, EditorAction] = {
    key: action for action, keys in KEYBINDINGS.items() for key in keys
}


def action_for(key: KeyId) -> EditorAction | None:
    """Return the action bound to *key*, if any."""
    return _KEY_TO_ACTION.get(key)


def keys_for(action: EditorAction) -> list[KeyId]:
    return list(KEYBINDINGS.get(action, []))


# ---------------------------------------------------------------------------
# Help text
# ---------------------------------------------------------------------------

HELP_SECTIONS: list[tuple[str, list[tuple[str, str]]]] = [
    ("Misc Commands", [
        ("F1", "Show edit shortcuts help."),
        ("Ctrl-^", "Enter keyboard debugging mode."),
        ("Ctrl-L", "Clear screen and redisplay line."),
    ]),
    ("Move Commands", [
        ("Ctrl-B, Left", "Move back a character."),
        ("Ctrl-F, Right", "Move forward a character."),
        ("Ctrl-Up, Alt-Up, ESC+Up", "Move cursor to the line above."),
        ("Ctrl-Down, Alt-Down, ESC+Down", "Move cursor to the line below."),
        ("Alt-B, Ctrl-Left, ESC+Left", "Move back a word."),
        ("Alt-F, Ctrl-Right, ESC+Right", "Move forward a word."),
        ("Ctrl-A, Home", "Move cursor to start of line."),
        ("Ctrl-E, End", "Move cursor to end of line."),
    ]),
    ("Edit Commands", [
        ("Ctrl-H, Backspace", "Delete character before cursor."),
        ("Ctrl-D, DEL", "Delete character under cursor."),
        ("Alt-U", "Uppercase current or following word."),
        ("Alt-L", "Lowercase current or following word."),
        ("Alt-C", "Capitalize current or following word."),
        ("Alt-\\", "Delete whitespace around cursor."),
        ("Ctrl-T", "Transpose character."),
    ]),
    ("Cut&Paste Commands", [
        ("Ctrl-K, Ctrl-End, ESC+End", "Cut from cursor to end of line."),
        ("Ctrl-U, Ctrl-Home, ESC+Home", "Cut from start of line to cursor."),
        ("Ctrl-X", "Cut whole line."),
        ("Alt-Backspace, Ctrl-Backspace", "Cut word to left of cursor."),
        ("Alt-D, Alt-Del, Ctrl-Del", "Cut word following cursor."),
        ("Ctrl-W", "Cut to left till whitespace (not word)."),
        ("Ctrl-Y, Ctrl-V, Insert", "Paste last cut text."),
    ]),
    ("Complete Commands", [
        ("TAB, Ctrl-I", "Autocomplete."),
        ("Alt-=, Alt-?", "List possible completions."),
    ]),
    ("History Commands", [
        ("Ctrl-P, Up", "Fetch previous line in history."),
        ("Ctrl-N, Down", "Fetch next line in history."),
        ("Alt-<, PgUp", "Move to first line in history."),
        ("Alt->, PgDn", "Move to end of input history."),
        ("Ctrl-R, Ctrl-S, F4", "Search history with current input."),
        ("F1", "Show search help when in search mode."),
        ("F2", "Show history."),
        ("F3", "Clear history (need confirm)."),
    ]),
    ("Control Commands", [
        ("Enter, Ctrl-J, Ctrl-M", "EOL and accept line."),
        ("Ctrl-C, Ctrl-G", "EOF and abort line."),
        ("Ctrl-D", "EOF if line is empty."),
        ("Alt-R", "Revert line."),
        ("Ctrl-Z", "Suspend job (fg resumes the edit)."),
    ]),
]

HELP_NOTES: list[str] = [
    "Note: If an Alt key does not work, press ESC first and then the key (ESC+Key).",
    "Note: On a line that wraps over several rows, Up and Down move between rows;",
    "      Up at the end of the text or on the first row fetches history.",
]

SEARCH_HELP: list[str] = [
    "The pattern is matched as a case-sensitive substring of each history line.",
    "  (Hint: use Ctrl-Y/Ctrl-V/Insert to paste the last cut text)",
    "An empty pattern lists the most recent lines.",
    "Type the id shown before a line to choose it.",
]


def help_lines() -> list[str]:
    """Format :data:`HELP_SECTIONS` as boxed tables."""
    key_width = max(len(keys) for _, rows in HELP_SECTIONS for keys, _ in rows) + 2
    text_width = max(len(text) for _, rows in HELP_SECTIONS for _, text in rows) + 2
    rule = " +" + "-" * key_width + "+" + "-" * text_width + "+"

    lines: list[str] = []
    for title, rows in HELP_SECTIONS:
        lines.append(" " + title)
        lines.append(rule)
        for keys, text in rows:
            lines.append(f" | {keys:<{key_width - 1}}| {text:<{text_width - 1}}|")
        lines.append(rule)
    lines.extend(HELP_NOTES)
    return lines
