"""Reset the bind-mounted data directories of the local stack.

Containers write into ``<root>/<service>/{data,logs,...}`` as their own
users, which leaves stale state and root-owned files behind between runs.
`reset_volumes` optionally tears the compose project down first, then
empties (or creates) each directory and leaves a ``.gitkeep`` in it.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from stackstrap.domain.errors import ToolNotFoundError, VolumeResetError
from stackstrap.interfaces.command_runner import CommandRunner

logger = logging.getLogger(__name__)

STACK_DIRECTORIES = (
    "elasticsearch/data",
    "elasticsearch/logs",
    "kibana/data",
    "kibana/logs",
    "mongodb/data",
    "mongodb/configdb",
    "kafka/data",
    "kafka/logs",
    "zookeeper/data",
    "zookeeper/logs",
    "sqlserver/data",
    "sqlserver/backup",
    "sqlserver/logs",
    "shared",
)

KEEP_FILE = ".gitkeep"
DIRECTORY_MODE = 0o755


@dataclass
class ResetReport:
    """What `reset_volumes` did."""

    recreated: list[Path] = field(default_factory=list)
    docker_failures: list[str] = field(default_factory=list)


def teardown_commands(root: Path) -> list[list[str]]:
    return [
        ["docker", "compose", "--project-directory", str(root), "down", "-v"],
        ["docker", "volume", "prune", "-f"],
    ]


def docker_teardown(runner: CommandRunner, root: Path) -> list[str]:
    """Stop the compose project and prune volumes; return the commands that failed.

    Failures are tolerated: nothing may be running, or docker may be absent.
    """
    failed: list[str] = []
    for argv in teardown_commands(root):
        command = " ".join(argv)
        try:
            result = runner.run(argv)
        except ToolNotFoundError:
            logger.warning("docker not found, skipping '%s'", command)
            failed.append(command)
            continue
        if not result.ok:
            reason = result.stderr.strip() or f"exit status {result.returncode}"
            logger.warning("'%s' failed: %s", command, reason)
            failed.append(command)
    return failed


def reset_directory(path: Path) -> None:
    """Empty `path` (creating it if needed), add a keep file and set 0755."""
    try:
        if path.is_dir():
            for child in path.iterdir():
                if child.is_dir() and not child.is_symlink():
                    shutil.rmtree(child)
                else:
                    child.unlink()
        else:
            path.mkdir(parents=True, exist_ok=True)
        (path / KEEP_FILE).touch()
        path.chmod(DIRECTORY_MODE)
    except OSError as e:
        raise VolumeResetError(str(path), e.strerror or str(e)) from e


def reset_volumes(
    root: Path,
    runner: CommandRunner | None = None,
    directories: tuple[str, ...] = STACK_DIRECTORIES,
) -> ResetReport:
    """Reset every stack directory under `root`.

    Args:
        root: Project root holding the per-service directories.
        runner: When given, ``docker compose down -v`` and
            ``docker volume prune -f`` run first.
        directories: Paths relative to `root` to recreate.

    Returns:
        ResetReport: Recreated directories and any docker commands that failed.

    Raises:
        VolumeResetError: A directory could not be emptied or created.
    """
    report = ResetReport()
    if runner is not None:
        report.docker_failures = docker_teardown(runner, root)
    for relative in directories:
        path = root / relative
        logger.info("Resetting %s", path)
        reset_directory(path)
        report.recreated.append(path)
    return report
