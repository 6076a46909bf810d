"""Regex-based redactor for sanitizing secrets from command lines.

This module provides a Redactor implementation that masks sensitive values
(passwords, tokens, keystore passphrases) found in tool invocations such as
``openssl ... -passout pass:secret``, ``keytool -storepass secret`` or
``sqlcmd -P secret``, and in free-form "key: value" / "key=value" fragments.
It supports lenient and strict modes (strict also redacts usernames).
"""

import re
from collections.abc import Sequence

from stackstrap.interfaces import redactor
from stackstrap.interfaces.redactor import RedactorMode

# pylint: disable=too-few-public-methods

PLACEHOLDER = "***"
SECRET_KEYWORDS = [
    "password",
    "passwd",
    "pwd",
    "secret",
    "token",
    "api_key",
    "apikey",
    "access_token",
    "encryption_key",
    "authorization",
]
STRICT_MODE_ADDITIONAL_KEYWORDS = ["user", "username", "uid"]
STRICT_MODE_SECRET_KEYWORDS = SECRET_KEYWORDS + STRICT_MODE_ADDITIONAL_KEYWORDS
SECRET_KEYWORDS_PATTERN = "|".join(kw.replace("_", "[-_.]?") for kw in SECRET_KEYWORDS)
STRICT_MODE_SECRET_KEYWORDS_PATTERN = "|".join(
    kw.replace("_", "[-_.]?") for kw in STRICT_MODE_SECRET_KEYWORDS
)

# Flags whose *next* argument is a secret
SECRET_FLAGS = frozenset(
    {
        "-storepass",
        "-srcstorepass",
        "-deststorepass",
        "-keypass",
        "-srckeypass",
        "-destkeypass",
        "-P",
        "-p",
        "--password",
    }
)
STRICT_MODE_SECRET_FLAGS = SECRET_FLAGS | {"-U", "-u", "--username"}

# openssl-style "pass:secret" / "env:VAR" passphrase arguments
OPENSSL_PASS_PATTERN = re.compile(r"^pass:.*$")
KEY_VALUE_SECRET_PATTERN = re.compile(
    rf"(\b[\w.]*(?:{SECRET_KEYWORDS_PATTERN})[\w.]*\s*[:=]\s*)[^\s,;]+", re.IGNORECASE
)
STRICT_MODE_KEY_VALUE_SECRET_PATTERN = re.compile(
    rf"(\b[\w.]*(?:{STRICT_MODE_SECRET_KEYWORDS_PATTERN})[\w.]*\s*[:=]\s*)[^\s,;]+",
    re.IGNORECASE,
)
BEARER_PATTERN = re.compile(r"Bearer\s[0-9a-zA-Z\.\-_=]*", re.IGNORECASE)
URL_PASSWORD_PATTERN = re.compile(r"(?<=://)([^:@/\s]+):([^@/\s]+)@")


class Redactor(redactor.Redactor):
    """Redactor implementation using regex-based sanitization."""

    def __init__(self, mode: RedactorMode = RedactorMode.LENIENT) -> None:
        self._mode = mode

    def sanitize_text(self, raw: str) -> str:
        sanitized = str(raw)

        # 1) scheme://user:pass@  → scheme://user:***@
        sanitized = URL_PASSWORD_PATTERN.sub(r"\1:***@", sanitized)

        # 2) Bearer tokens: Bearer <token>
        sanitized = BEARER_PATTERN.sub(f"Bearer {PLACEHOLDER}", sanitized)

        # 3) key: value / key=value secrets
        key_value_pattern = (
            STRICT_MODE_KEY_VALUE_SECRET_PATTERN
            if self._mode == RedactorMode.STRICT
            else KEY_VALUE_SECRET_PATTERN
        )
        sanitized = key_value_pattern.sub(rf"\1{PLACEHOLDER}", sanitized)

        return sanitized

    def sanitize_argv(self, argv: Sequence[str]) -> list[str]:
        flags = (
            STRICT_MODE_SECRET_FLAGS
            if self._mode == RedactorMode.STRICT
            else SECRET_FLAGS
        )
        sanitized: list[str] = []
        mask_next = False
        for arg in argv:
            arg = str(arg)
            if mask_next:
                sanitized.append(PLACEHOLDER)
                mask_next = False
            elif arg in flags:
                sanitized.append(arg)
                mask_next = True
            elif OPENSSL_PASS_PATTERN.match(arg):
                sanitized.append(f"pass:{PLACEHOLDER}")
            else:
                sanitized.append(self.sanitize_text(arg))
        return sanitized
