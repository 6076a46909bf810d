"""Interface for running external commands.

Every shell-out in STACKSTRAP goes through a `CommandRunner` so services
can be tested with scripted fakes.
"""

import abc
from collections.abc import Mapping, Sequence

from stackstrap.domain.errors import ToolError
from stackstrap.domain.results import CommandResult


class CommandRunner(abc.ABC):
    """Abstract base class for external command execution."""

    @abc.abstractmethod
    def run(
        self,
        argv: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        """Run `argv` to completion and capture its output.

        A non-zero exit is reported through `CommandResult.returncode`, never
        raised.

        Args:
            argv: Program and arguments.
            env: Extra environment variables merged over the current process
                environment.
            timeout: Seconds to wait before giving up.

        Returns:
            CommandResult: Exit status and captured stdout/stderr.

        Raises:
            ToolNotFoundError: If the program is not on PATH.
        """

    @abc.abstractmethod
    def which(self, tool: str) -> str | None:
        """Return the resolved path of `tool`, or None when not installed."""

    def check(
        self,
        argv: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        """Like `run`, but raise `ToolError` on a non-zero exit."""
        result = self.run(argv, env=env, timeout=timeout)
        if not result.ok:
            raise ToolError(result.argv, result.returncode, result.stderr)
        return result
