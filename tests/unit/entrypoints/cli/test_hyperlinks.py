"""Unit tests for OSC-8 hyperlink detection and rendering."""

import pytest

from stackstrap.entrypoints.cli.helpers import hyperlinks

URL = "https://kafka.apache.org/documentation/#brokerconfigs"


class FakeStream:
    # pylint: disable=missing-function-docstring,too-few-public-methods
    def __init__(self, tty: bool) -> None:
        self._tty = tty

    def isatty(self) -> bool:
        return self._tty


@pytest.fixture(autouse=True)
def _clean_terminal_env(monkeypatch):
    for key in ("TERM_PROGRAM", "WT_SESSION", "VTE_VERSION", "TERM"):
        monkeypatch.delenv(key, raising=False)


@pytest.mark.parametrize(
    ("env", "expected"),
    [
        ({"TERM_PROGRAM": "vscode"}, True),
        ({"TERM_PROGRAM": "iTerm.app"}, True),
        ({"TERM_PROGRAM": "WezTerm"}, True),
        ({"WT_SESSION": "1"}, True),
        ({"VTE_VERSION": "7200"}, True),
        ({"TERM": "alacritty"}, True),
        ({"TERM": "konsole-256color"}, True),
        ({"TERM": "xterm-256color"}, False),
        ({}, False),
    ],
)
def test_supports_osc8(monkeypatch, env, expected):
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    assert hyperlinks.supports_osc8(FakeStream(tty=True)) is expected  # type: ignore[arg-type]


def test_non_tty_never_supports_osc8(monkeypatch):
    monkeypatch.setenv("TERM_PROGRAM", "vscode")
    assert hyperlinks.supports_osc8(FakeStream(tty=False)) is False  # type: ignore[arg-type]


def test_hyperlink_plain_fallback(monkeypatch):
    monkeypatch.setattr(hyperlinks, "supports_osc8", lambda stream=None: False)
    assert hyperlinks.hyperlink(URL) == URL
    assert hyperlinks.hyperlink(URL, "broker configs") == "broker configs"


def test_hyperlink_osc8(monkeypatch):
    monkeypatch.setattr(hyperlinks, "supports_osc8", lambda stream=None: True)
    assert hyperlinks.hyperlink(URL, "docs") == f"\x1b]8;;{URL}\x07docs\x1b]8;;\x07"
