"""Interfaces for the operating system's trusted root store."""

import abc
import shlex
from pathlib import Path

# pylint: disable=too-few-public-methods


class TrustStore(abc.ABC):
    """A platform-specific trusted root certificate store."""

    name: str

    @abc.abstractmethod
    def import_commands(self, cert_path: Path, common_name: str) -> list[list[str]]:
        """Return the command lines that import `cert_path` into this store.

        These are both executed (privileged path) and shown verbatim to the
        user (unprivileged path).
        """

    @abc.abstractmethod
    def manual_steps(self, cert_path: Path, common_name: str) -> list[str]:
        """Return human instructions for importing the certificate by hand."""

    def prepare(self, cert_path: Path, common_name: str) -> None:
        """Hook run before the import commands (e.g. copy into an anchors dir)."""

    def manual_commands(self, cert_path: Path, common_name: str) -> list[str]:
        """Return the exact shell commands a user runs to import by hand."""
        return [shlex.join(cmd) for cmd in self.import_commands(cert_path, common_name)]
