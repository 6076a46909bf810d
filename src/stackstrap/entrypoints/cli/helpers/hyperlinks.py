"""OSC-8 hyperlink utilities for the STACKSTRAP CLI.

Detects whether the active text stream supports OSC-8 terminal hyperlinks
and renders a URL as a clickable link, falling back to plain text when
unsupported. Pure formatting only.
"""

import os
import sys
from typing import TextIO

OSC8_TERMINAL_PROGRAMS = frozenset(
    {"apple_terminal", "vscode", "iterm.app", "wezterm", "kitty"}
)


def supports_osc8(stream: TextIO | None = None) -> bool:
    """Heuristically detect whether `stream` supports OSC-8 hyperlinks.

    Returns ``False`` for anything that is not a TTY (pipes, ``docker logs``),
    then checks a conservative allowlist of terminal identifiers.
    """
    stream = stream or sys.stdout
    if not getattr(stream, "isatty", lambda: False)():
        return False
    terminal_program = (os.getenv("TERM_PROGRAM") or "").lower()
    return bool(
        terminal_program in OSC8_TERMINAL_PROGRAMS
        or os.getenv("WT_SESSION")  # Windows Terminal
        or os.getenv("VTE_VERSION")  # GNOME Terminal, Tilix, etc.
        or os.getenv("TERM", "").startswith(("alacritty", "konsole"))
    )


def hyperlink(url: str, text: str | None = None) -> str:
    """Return `text` (default: the URL) as an OSC-8 link when supported.

    Uses BEL (``\\x07``) as the terminator for broad terminal support.
    """
    label = text or url
    if not supports_osc8():
        return label
    return f"\x1b]8;;{url}\x07{label}\x1b]8;;\x07"
