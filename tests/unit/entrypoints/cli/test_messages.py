"""Unit tests for :mod:`stackstrap.entrypoints.cli.helpers.messages`.

Glyphs must fall back to ASCII when stderr cannot encode emoji (container
logs, some Windows consoles), and every message goes to stderr so stdout
stays clean for tables and copy-pasteable commands.
"""

import io
import sys

import click
import pytest

from stackstrap.entrypoints.cli.helpers.messages import (
    _supports_character,
    caution_glyph,
    error,
    error_glyph,
    info_glyph,
    note,
    success,
    success_glyph,
    warn,
)

ANSI = {
    "yellow": "\x1b[33m",
    "green": "\x1b[32m",
    "red": "\x1b[31m",
    "cyan": "\x1b[36m",
}
SET_BOLD = "\x1b[1m"
RESET = "\x1b[0m"


class FakeTTY(io.StringIO):
    """A text stream that claims to be a TTY with a chosen encoding."""

    def __init__(self, encoding: str):
        super().__init__()
        self._encoding = encoding

    @property
    def encoding(self) -> str:
        return self._encoding

    def isatty(self) -> bool:
        return True


@pytest.fixture
def stderr_as(monkeypatch):
    """Point both Click's stream probe and ``sys.stderr`` at a FakeTTY."""

    def _use(encoding: str) -> FakeTTY:
        stream = FakeTTY(encoding)
        monkeypatch.setattr(click, "get_text_stream", lambda name: stream)
        monkeypatch.setattr(sys, "stderr", stream, raising=False)
        monkeypatch.delenv("NO_COLOR", raising=False)
        return stream

    return _use


@pytest.mark.parametrize(
    ("encoding", "expected"),
    [
        ("ascii", ("[!]", "[OK]", "[X]", "[i]")),
        ("utf-8", ("⚠️", "✅", "❌", "ℹ️")),
    ],
)
def test_glyphs_follow_stderr_encoding(stderr_as, encoding, expected):
    stderr_as(encoding)
    assert (caution_glyph(), success_glyph(), error_glyph(), info_glyph()) == expected


def test_supports_character_is_not_cached(monkeypatch):
    encodings = iter(["ascii", "utf-8"])
    monkeypatch.setattr(click, "get_text_stream", lambda name: FakeTTY(next(encodings)))

    assert _supports_character("✅") is False
    assert _supports_character("✅") is True


@pytest.mark.parametrize(
    ("func", "color", "bold"),
    [(warn, "yellow", True), (success, "green", True), (error, "red", True), (note, "cyan", False)],
)
def test_messages_are_styled(stderr_as, func, color, bold):
    stream = stderr_as("ascii")

    func("Generated 3 certificates")

    out = stream.getvalue()
    assert "Generated 3 certificates" in out
    assert ANSI[color] in out
    assert (SET_BOLD in out) is bold
    assert out.rstrip().endswith(RESET)


@pytest.mark.parametrize("func", [warn, success, error, note])
def test_messages_leave_stdout_alone(capsys, func):
    func("keytool not found")
    captured = capsys.readouterr()
    assert "keytool not found" in captured.err
    assert captured.out == ""
