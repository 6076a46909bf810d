"""Subprocess-backed command runner."""

import logging
import os
import shutil
import subprocess
from collections.abc import Mapping, Sequence

from stackstrap.domain.errors import ToolNotFoundError
from stackstrap.domain.results import CommandResult
from stackstrap.interfaces.command_runner import CommandRunner
from stackstrap.interfaces.redactor import Redactor

logger = logging.getLogger(__name__)

TIMEOUT_RETURNCODE = 124  # same status coreutils `timeout` uses


class SubprocessCommandRunner(CommandRunner):
    """CommandRunner implementation using `subprocess.run`.

    Command lines are logged at DEBUG through the redactor so keystore and
    database passwords never reach the console or the flight recorder.
    """

    def __init__(self, redactor: Redactor) -> None:
        self._redactor = redactor

    def run(
        self,
        argv: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        args = tuple(str(a) for a in argv)
        logger.debug("$ %s", self._redactor.format_argv(args))
        merged_env = {**os.environ, **env} if env else None
        try:
            completed = subprocess.run(  # pylint: disable=subprocess-run-check
                args,
                capture_output=True,
                text=True,
                env=merged_env,
                timeout=timeout,
            )
        except FileNotFoundError as e:
            raise ToolNotFoundError(args[0]) from e
        except subprocess.TimeoutExpired as e:
            logger.warning("%s timed out after %ss", args[0], timeout)
            return CommandResult(
                argv=args,
                returncode=TIMEOUT_RETURNCODE,
                stdout=_as_text(e.stdout),
                stderr=_as_text(e.stderr) or f"timed out after {timeout}s",
            )

        result = CommandResult(
            argv=args,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
        if not result.ok:
            logger.debug(
                "%s exited %s: %s",
                args[0],
                result.returncode,
                self._redactor.sanitize_text(result.stderr.strip()),
            )
        return result

    def which(self, tool: str) -> str | None:
        return shutil.which(tool)


def _as_text(value: bytes | str | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode(errors="replace")
    return value
