"""Result types returned across the service layer.

`CommandResult` is the single return type of every external-command wrapper.
Parsing helpers return `None` / empty lists on empty output instead of
raising, so callers turn "no output" into an explicit failed check.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class CommandResult:
    """Outcome of running an external command."""

    argv: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        """True when the command exited with status 0."""
        return self.returncode == 0

    def lines(self) -> list[str]:
        """Return non-empty, stripped stdout lines."""
        return [line.strip() for line in self.stdout.splitlines() if line.strip()]

    def first_line(self) -> str | None:
        """Return the first non-empty stdout line, or None if there is none."""
        lines = self.lines()
        return lines[0] if lines else None


# ============================================================================
#                           Trust installation
# ============================================================================


@dataclass(frozen=True)
class Installed:
    """The CA certificate was imported into the OS trust store."""

    store: str
    certificate: Path


@dataclass(frozen=True)
class ManualStepsRequired:
    """The CA could not be imported automatically; guidance for the user."""

    reason: str
    steps: tuple[str, ...]
    commands: tuple[str, ...]


TrustOutcome = Installed | ManualStepsRequired


# ============================================================================
#                           Health checks
# ============================================================================


@dataclass
class CleanupReport:
    """Tally of resources a check tried to clean up."""

    attempted: list[str] = field(default_factory=list)
    cleaned: list[str] = field(default_factory=list)

    @property
    def failed(self) -> list[str]:
        return [name for name in self.attempted if name not in self.cleaned]

    @property
    def complete(self) -> bool:
        return not self.failed

    @property
    def soft_pass(self) -> bool:
        """Some, but not all, resources were cleaned."""
        return bool(self.cleaned) and bool(self.failed)


@dataclass
class CheckResult:
    """Pass/fail outcome of a single health check step."""

    name: str
    passed: bool
    detail: str = ""
    warnings: list[str] = field(default_factory=list)
