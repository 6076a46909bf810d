"""Interfaces for redacting sensitive values.

This module defines the Redactor interface and the RedactorMode enumeration
used to sanitize secrets (passwords, tokens, keystore passphrases) from
command lines and free-form strings before they are logged or shown.
"""

import abc
from collections.abc import Sequence
from enum import Enum

# pylint: disable=too-few-public-methods


class RedactorMode(Enum):
    """Enumeration for redactor modes.

    Modes:
    - LENIENT: redact passwords/tokens but keep usernames visible.
    - STRICT: redact passwords/tokens and also usernames.
    """

    LENIENT = "lenient"
    STRICT = "strict"


class Redactor(abc.ABC):
    """Interface for sanitizing sensitive information from strings."""

    _mode: RedactorMode

    @abc.abstractmethod
    def sanitize_text(self, raw: str) -> str:
        """Return a display-safe version of a free-form string."""

    @abc.abstractmethod
    def sanitize_argv(self, argv: Sequence[str]) -> list[str]:
        """Return a display-safe copy of a command line.

        Args:
            argv: Program and arguments as passed to the OS.

        Returns:
            The arguments with secret values replaced by a placeholder.
        """

    def format_argv(self, argv: Sequence[str]) -> str:
        """Sanitize `argv` and join it into a single display string."""
        return " ".join(self.sanitize_argv(argv))

    @property
    def mode(self) -> RedactorMode:
        """Return the redaction mode."""
        return self._mode
