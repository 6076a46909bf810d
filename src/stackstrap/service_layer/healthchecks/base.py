"""Shared plumbing for health checks: container exec and bounded cleanup retry."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping

from stackstrap.domain.results import CheckResult, CleanupReport, CommandResult
from stackstrap.interfaces.command_runner import CommandRunner

logger = logging.getLogger(__name__)

Sleep = Callable[[float], None]
Action = Callable[[], CommandResult]

DEFAULT_ATTEMPTS = 3
DEFAULT_BACKOFF = 3.0
COMMAND_TIMEOUT = 60.0


class ContainerExec:  # pylint: disable=too-few-public-methods
    """Run commands inside a named container through ``docker exec``."""

    def __init__(self, runner: CommandRunner, container: str) -> None:
        self._runner = runner
        self.container = container

    def __call__(self, *argv: str) -> CommandResult:
        return self._runner.run(
            ["docker", "exec", self.container, *argv], timeout=COMMAND_TIMEOUT
        )


def with_retry(
    action: Action,
    attempts: int = DEFAULT_ATTEMPTS,
    backoff: float = DEFAULT_BACKOFF,
    sleep: Sleep = time.sleep,
) -> CommandResult:
    """Run `action` until it succeeds or `attempts` are used up.

    Returns:
        The first successful result, or the last failed one.
    """
    result = action()
    for attempt in range(2, attempts + 1):
        if result.ok:
            break
        logger.info("Retrying in %ss (attempt %d/%d)", backoff, attempt, attempts)
        sleep(backoff)
        result = action()
    return result


def clean_up(
    resources: Mapping[str, Action],
    attempts: int = DEFAULT_ATTEMPTS,
    backoff: float = DEFAULT_BACKOFF,
    sleep: Sleep = time.sleep,
) -> CleanupReport:
    """Delete each resource with bounded retry.

    A resource counts as cleaned only when its command returned success.
    """
    report = CleanupReport()
    for name, action in resources.items():
        report.attempted.append(name)
        if with_retry(action, attempts=attempts, backoff=backoff, sleep=sleep).ok:
            report.cleaned.append(name)
        else:
            logger.warning("Could not clean up %s after %d attempts", name, attempts)
    return report


def cleanup_result(name: str, report: CleanupReport) -> CheckResult:
    """Turn a cleanup tally into a check step.

    Partial cleanup is a soft pass with a warning; the service may finish
    deleting in the background.
    """
    total = len(report.attempted)
    detail = f"{len(report.cleaned)}/{total} cleaned"
    if report.complete:
        return CheckResult(name, True, detail)
    if report.soft_pass:
        return CheckResult(
            name,
            True,
            detail,
            warnings=[
                f"Not cleaned: {', '.join(report.failed)}; background cleanup may "
                "still complete."
            ],
        )
    return CheckResult(name, False, f"{detail}: {', '.join(report.failed)}")


def step(name: str, result: CommandResult, detail: str = "") -> CheckResult:
    """Pass/fail step from a command's exit status."""
    if result.ok:
        return CheckResult(name, True, detail)
    reason = result.stderr.strip().splitlines()[-1] if result.stderr.strip() else ""
    return CheckResult(name, False, reason or f"exit status {result.returncode}")


def parse_int(line: str | None) -> int | None:
    """Parse a bare integer from a line of tool output, if there is one."""
    if line is None:
        return None
    try:
        return int(line.strip())
    except ValueError:
        return None
