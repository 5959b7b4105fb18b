"""Keyboard decoding for raw-mode terminals.

Turns the byte stream delivered by a :class:`~pi.line.terminal.TerminalPort`
into :class:`KeyEvent` values named with the same ``KeyId`` strings the rest
of the package uses (``"a"``, ``"ctrl+a"``, ``"alt+left"``, ``"pageUp"``).

Legacy xterm, rxvt and Linux console sequences are folded onto one canonical
key each. Anything the tables do not know degrades to a bare ``"escape"``
rather than raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from pi.line.terminal import TerminalPort

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------

KeyId = str

KeyKind = Literal["printable", "control", "named"]

# ---------------------------------------------------------------------------
# Key helper object
# ---------------------------------------------------------------------------


class Key:
    """Named key constants and modifier combinators."""

    escape = "escape"
    enter = "enter"
    tab = "tab"
    backspace = "backspace"
    delete = "delete"
    insert = "insert"
    home = "home"
    end = "end"
    page_up = "pageUp"
    page_down = "pageDown"
    up = "up"
    down = "down"
    left = "left"
    right = "right"

    f1 = "f1"
    f2 = "f2"
    f3 = "f3"
    f4 = "f4"
    f5 = "f5"


# ---------------------------------------------------------------------------
# Key events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KeyEvent:
    """One decoded key press.

    ``kind`` is ``"printable"`` for text, ``"control"`` for single C0 bytes
    (``ctrl+a``, ``enter``, ``backspace``) and ``"named"`` for everything
    that arrived through an ESC prefix. ``escaped`` is true for every key
    that started with ESC, including a bare ``"escape"``.
    """

    kind: KeyKind
    key: KeyId
    escaped: bool = False

    @property
    def char(self) -> str | None:
        return self.key if self.kind == "printable" else None


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ESC = 0x1B

MODIFIERS: dict[str, int] = {
    "shift": 1,
    "alt": 2,
    "ctrl": 4,
}

# Complete escape sequences -> key names
LEGACY_KEY_SEQUENCES: dict[str, KeyId] = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[1~": "home",
    "\x1b[2~": "insert",
    "\x1b[3~": "delete",
    "\x1b[4~": "end",
    "\x1b[5~": "pageUp",
    "\x1b[6~": "pageDown",
    "\x1b[7~": "home",
    "\x1b[8~": "end",
    "\x1bOP": "f1",
    "\x1bOQ": "f2",
    "\x1bOR": "f3",
    "\x1bOS": "f4",
    "\x1b[11~": "f1",
    "\x1b[12~": "f2",
    "\x1b[13~": "f3",
    "\x1b[14~": "f4",
    "\x1b[15~": "f5",
    # Linux console
    "\x1b[[A": "f1",
    "\x1b[[B": "f2",
    "\x1b[[C": "f3",
    "\x1b[[D": "f4",
    "\x1b[[E": "f5",
    "\x1b[Z": "shift+tab",
}

# rxvt sends lower-case SS3 finals for ctrl+arrows
LEGACY_CTRL_SEQUENCES: dict[str, KeyId] = {
    "\x1bOa": "up",
    "\x1bOb": "down",
    "\x1bOc": "right",
    "\x1bOd": "left",
}

# ESC followed by one of these keys is promoted to its alt variant
ESC_TO_ALT: dict[KeyId, KeyId] = {
    "delete": "alt+delete",
    "home": "alt+home",
    "end": "alt+end",
    "up": "alt+up",
    "down": "alt+down",
    "left": "alt+left",
    "right": "alt+right",
    "backspace": "alt+backspace",
}

# Control bytes that have a more specific name than ctrl+<letter>
KEY_ALIASES: dict[KeyId, KeyId] = {
    "ctrl+h": "backspace",
    "ctrl+i": "tab",
    "ctrl+j": "enter",
    "ctrl+m": "enter",
    "ctrl+_": "ctrl+backspace",
}


def _control_key(byte: int) -> KeyId:
    if byte == 0x7F:
        return "backspace"
    if byte == 0:
        name = "ctrl+@"
    elif byte <= 26:
        name = "ctrl+" + chr(byte + 0x60)
    else:
        name = "ctrl+" + chr(byte + 0x40)
    return KEY_ALIASES.get(name, name)


def _modifier_prefix(modifier: int) -> str:
    """Translate an xterm modifier parameter (2..8) into a ``KeyId`` prefix."""
    mod = modifier - 1
    prefix = ""
    if mod & MODIFIERS["ctrl"]:
        prefix += "ctrl+"
    if mod & MODIFIERS["shift"]:
        prefix += "shift+"
    if mod & MODIFIERS["alt"]:
        prefix += "alt+"
    return prefix


def lookup_sequence(seq: str) -> KeyId | None:
    """Return the key named by a complete escape sequence, if any.

    Besides the plain tables this understands the xterm modifier forms
    ``ESC [ 1 ; m X``, ``ESC [ n ; m ~`` and ``ESC O m X``.
    """
    key = LEGACY_KEY_SEQUENCES.get(seq)
    if key is not None:
        return key
    key = LEGACY_CTRL_SEQUENCES.get(seq)
    if key is not None:
        return "ctrl+" + key

    if seq.startswith("\x1b[") and ";" in seq:
        params, final = seq[2:-1], seq[-1]
        number, _, modifier = params.partition(";")
        if not modifier.isdigit() or not 2 <= int(modifier) <= 8:
            return None
        base = f"\x1b[{final}" if final != "~" else f"\x1b[{number}~"
        if final != "~" and number not in ("", "1"):
            return None
        if final in "PQRS":
            base = f"\x1bO{final}"
        key = LEGACY_KEY_SEQUENCES.get(base)
        return _modifier_prefix(int(modifier)) + key if key else None

    if seq.startswith("\x1bO") and len(seq) == 4 and seq[2].isdigit():
        key = LEGACY_KEY_SEQUENCES.get("\x1bO" + seq[3])
        modifier = int(seq[2])
        if key and 2 <= modifier <= 8:
            return _modifier_prefix(modifier) + key
    return None


# ---------------------------------------------------------------------------
# Decoder
# ---------------------------------------------------------------------------


class KeyDecoder:
    """Pulls bytes from a terminal port and assembles them into key events.

    The decoder blocks for as many bytes as a sequence needs; there is no
    timeout separating a bare ESC from the start of a sequence. Bytes read
    ahead but not consumed are returned to the port with ``push_back``.
    """

    def __init__(self, port: TerminalPort) -> None:
        self._port = port

    def read_byte(self) -> int:
        byte = self._port.read_byte()
        if byte is None:
            raise EOFError("terminal input closed")
        return byte

    def next_key(self, escape_combo: bool = True) -> KeyEvent:
        """Read one logical key.

        With *escape_combo* enabled, ``ESC ESC <key>`` is the portable way of
        typing an alt combination: the key after the second ESC is promoted
        through :data:`ESC_TO_ALT`. With it disabled the second ESC is left
        for the next call and a bare escape is returned.

        Raises ``EOFError`` when the port reports end of input.
        """
        byte = self.read_byte()
        if byte != ESC:
            return self._plain_key(byte)

        nxt = self.read_byte()
        if nxt == ESC:
            if not escape_combo:
                self._port.push_back(nxt)
                return KeyEvent("named", Key.escape, escaped=True)
            event = self._escape_tail(self.read_byte())
            promoted = ESC_TO_ALT.get(event.key)
            if promoted is not None:
                return KeyEvent("named", promoted, escaped=True)
            return event
        return self._escape_tail(nxt)

    # -- single bytes --------------------------------------------------------

    def _plain_key(self, byte: int) -> KeyEvent:
        if byte < 0x20 or byte == 0x7F:
            return KeyEvent("control", _control_key(byte))
        if byte < 0x80:
            return KeyEvent("printable", chr(byte))
        return KeyEvent("printable", self._utf8_char(byte))

    def _utf8_char(self, lead: int) -> str:
        if lead >= 0xF0:
            need = 3
        elif lead >= 0xE0:
            need = 2
        elif lead >= 0xC0:
            need = 1
        else:
            return "\ufffd"

        data = bytearray([lead])
        for _ in range(need):
            byte = self.read_byte()
            if byte & 0xC0 != 0x80:
                self._port.push_back(byte)
                return "\ufffd"
            data.append(byte)
        text = data.decode("utf-8", errors="replace")
        return text if len(text) == 1 else "\ufffd"

    # -- escape sequences ----------------------------------------------------

    def _escape_tail(self, byte: int) -> KeyEvent:
        """Decode whatever follows a single ESC."""
        if byte == ord("["):
            return self._csi()
        if byte == ord("O"):
            return self._ss3()
        if byte in (0x7F, 0x08):
            return KeyEvent("named", "alt+backspace", escaped=True)
        if 0x20 <= byte < 0x7F:
            return KeyEvent("named", "alt+" + chr(byte).lower(), escaped=True)

        self._port.push_back(byte)
        return KeyEvent("named", Key.escape, escaped=True)

    def _csi(self) -> KeyEvent:
        seq = "\x1b["
        byte = self.read_byte()
        if byte == ord("["):
            seq += "[" + chr(self.read_byte())
            return self._resolve(seq)

        while 0x30 <= byte <= 0x3F:
            seq += chr(byte)
            byte = self.read_byte()
        while 0x20 <= byte <= 0x2F:
            seq += chr(byte)
            byte = self.read_byte()
        if not 0x40 <= byte <= 0x7E:
            logger.debug("malformed CSI sequence %r + 0x%02x", seq, byte)
            self._port.push_back(byte)
            return KeyEvent("named", Key.escape, escaped=True)
        return self._resolve(seq + chr(byte))

    def _ss3(self) -> KeyEvent:
        seq = "\x1bO" + chr(self.read_byte())
        if seq[-1].isdigit():
            seq += chr(self.read_byte())
        return self._resolve(seq)

    def _resolve(self, seq: str) -> KeyEvent:
        key = lookup_sequence(seq)
        if key is None:
            logger.debug("unknown escape sequence %r", seq)
            return KeyEvent("named", Key.escape, escaped=True)
        return KeyEvent("named", key, escaped=True)
