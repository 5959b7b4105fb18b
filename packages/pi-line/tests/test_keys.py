"""Tests for pi.line.keys -- byte stream to key event decoding."""

from __future__ import annotations

import pytest

from pi.line.keys import Key, KeyDecoder, KeyEvent, lookup_sequence

from .virtual_terminal import VirtualTerminal


def decode(data: str | bytes, escape_combo: bool = True) -> tuple[KeyEvent, bytes]:
    """Decode one key from *data* and return it with the unread input."""
    terminal = VirtualTerminal()
    terminal.feed(data)
    event = KeyDecoder(terminal).next_key(escape_combo)
    return event, terminal.pending_input


class TestPlainKeys:
    """Single bytes and UTF-8 text."""

    def test_printable_ascii(self) -> None:
        event, _ = decode("a")
        assert event == KeyEvent("printable", "a")
        assert event.char == "a"
        assert event.escaped is False

    @pytest.mark.parametrize(
        "data, key",
        [
            ("\x01", "ctrl+a"),
            ("\x12", "ctrl+r"),
            ("\r", "enter"),
            ("\n", "enter"),
            ("\t", "tab"),
            ("\x7f", "backspace"),
            ("\x08", "backspace"),
            ("\x1f", "ctrl+backspace"),
            ("\x1e", "ctrl+^"),
            ("\x00", "ctrl+@"),
        ],
    )
    def test_control_bytes(self, data: str, key: str) -> None:
        event, _ = decode(data)
        assert event.kind == "control"
        assert event.key == key
        assert event.char is None

    @pytest.mark.parametrize("text", ["é", "日", "€", "😀"])
    def test_utf8_characters(self, text: str) -> None:
        event, rest = decode(text + "z")
        assert event == KeyEvent("printable", text)
        assert rest == b"z"

    def test_invalid_continuation_byte_is_returned(self) -> None:
        event, rest = decode(b"\xc3(")
        assert event.key == "\ufffd"
        assert rest == b"("

    def test_stray_continuation_byte(self) -> None:
        event, _ = decode(b"\x80")
        assert event.key == "\ufffd"


class TestEscapeSequences:
    """CSI, SS3 and ESC-prefixed keys."""

    @pytest.mark.parametrize(
        "data, key",
        [
            ("\x1b[A", "up"),
            ("\x1b[B", "down"),
            ("\x1b[C", "right"),
            ("\x1b[D", "left"),
            ("\x1bOA", "up"),
            ("\x1b[H", "home"),
            ("\x1b[F", "end"),
            ("\x1b[1~", "home"),
            ("\x1b[4~", "end"),
            ("\x1b[7~", "home"),
            ("\x1b[8~", "end"),
            ("\x1b[2~", "insert"),
            ("\x1b[3~", "delete"),
            ("\x1b[5~", "pageUp"),
            ("\x1b[6~", "pageDown"),
            ("\x1bOP", "f1"),
            ("\x1bOS", "f4"),
            ("\x1b[11~", "f1"),
            ("\x1b[[A", "f1"),
            ("\x1b[[E", "f5"),
            ("\x1b[1;5C", "ctrl+right"),
            ("\x1b[1;5D", "ctrl+left"),
            ("\x1b[1;3A", "alt+up"),
            ("\x1b[3;5~", "ctrl+delete"),
            ("\x1b[1;5H", "ctrl+home"),
            ("\x1bOd", "ctrl+left"),
            ("\x1bO5A", "ctrl+up"),
            ("\x1b[Z", "shift+tab"),
        ],
    )
    def test_known_sequences(self, data: str, key: str) -> None:
        event, rest = decode(data)
        assert event.key == key
        assert event.escaped is True
        assert rest == b""

    def test_alt_letter_is_lower_cased(self) -> None:
        assert decode("\x1bb")[0].key == "alt+b"
        assert decode("\x1bB")[0].key == "alt+b"

    def test_alt_punctuation(self) -> None:
        assert decode("\x1b<")[0].key == "alt+<"
        assert decode("\x1b=")[0].key == "alt+="

    def test_alt_backspace(self) -> None:
        assert decode("\x1b\x7f")[0].key == "alt+backspace"

    def test_unknown_sequence_is_bare_escape(self) -> None:
        event, _ = decode("\x1b[99~")
        assert event.key == Key.escape
        assert event.escaped is True

    def test_malformed_csi_pushes_back_offending_byte(self) -> None:
        event, rest = decode("\x1b[1\x01")
        assert event.key == Key.escape
        assert rest == b"\x01"

    def test_escape_before_control_byte(self) -> None:
        event, rest = decode("\x1b\x01")
        assert event.key == Key.escape
        assert rest == b"\x01"


class TestEscapeCombo:
    """ESC ESC <key> as a portable alt modifier."""

    @pytest.mark.parametrize(
        "data, key",
        [
            ("\x1b\x1b[D", "alt+left"),
            ("\x1b\x1b[C", "alt+right"),
            ("\x1b\x1b[3~", "alt+delete"),
            ("\x1b\x1b[H", "alt+home"),
            ("\x1b\x1bOF", "alt+end"),
        ],
    )
    def test_promoted_keys(self, data: str, key: str) -> None:
        assert decode(data)[0].key == key

    def test_disabled_combo_returns_bare_escape(self) -> None:
        event, rest = decode("\x1b\x1b[D", escape_combo=False)
        assert event.key == Key.escape
        assert rest == b"\x1b[D"

    def test_disabled_combo_still_decodes_sequences(self) -> None:
        assert decode("\x1b[D", escape_combo=False)[0].key == "left"


class TestEndOfInput:
    def test_empty_input_raises(self) -> None:
        with pytest.raises(EOFError):
            decode("")

    def test_truncated_sequence_raises(self) -> None:
        with pytest.raises(EOFError):
            decode("\x1b[")


class TestLookupSequence:
    """Modifier parameters on xterm sequences."""

    def test_shift_and_ctrl_modifiers(self) -> None:
        assert lookup_sequence("\x1b[1;2A") == "shift+up"
        assert lookup_sequence("\x1b[1;6A") == "ctrl+shift+up"
        assert lookup_sequence("\x1b[1;7B") == "ctrl+alt+down"

    def test_modified_function_key(self) -> None:
        assert lookup_sequence("\x1b[1;5P") == "ctrl+f1"

    def test_out_of_range_modifier(self) -> None:
        assert lookup_sequence("\x1b[1;9A") is None

    def test_unknown(self) -> None:
        assert lookup_sequence("\x1b[42~") is None
