"""Shared entrypoint steps: permission fixes, atomic writes and exec handoff."""

from __future__ import annotations

import logging
import os
import shutil
import sys
import tempfile
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_MODE = 0o755

ExecFn = Callable[[str, Sequence[str]], None]


def running_as_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


def atomic_write_text(path: Path, text: str, mode: int = 0o644) -> None:
    """Write `text` to `path` via a temp file + rename in the same directory.

    Readers see either the old file or the complete new one.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
            tmp.write(text)
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def _walk(root: Path) -> Iterable[Path]:
    yield root
    for dirpath, dirnames, filenames in os.walk(root):
        base = Path(dirpath)
        for name in (*dirnames, *filenames):
            yield base / name


def fix_permissions(
    paths: Iterable[Path], user: str | None, mode: int = DEFAULT_MODE
) -> list[Path]:
    """Create `paths`, chown them recursively to `user` and chmod to `mode`.

    Failures (typically bind mounts from a Windows host, or an unknown user)
    are logged as warnings and do not stop the startup.

    Returns:
        The paths that were fixed completely.
    """
    fixed: list[Path] = []
    for root in paths:
        try:
            root.mkdir(parents=True, exist_ok=True)
            for path in _walk(root):
                if user:
                    shutil.chown(path, user=user, group=user)
                os.chmod(path, mode)
        except (PermissionError, LookupError) as e:
            logger.warning("Could not fix permissions on %s (bind mount?): %s", root, e)
            continue
        logger.info("Fixed permissions on %s (owner=%s, mode=%o)", root, user, mode)
        fixed.append(root)
    return fixed


def as_user(argv: Sequence[str], user: str | None, privileged: bool) -> list[str]:
    """Prefix `argv` with ``runuser -u <user> --`` when dropping root."""
    if privileged and user:
        return ["runuser", "-u", user, "--", *argv]
    return list(argv)


def exec_service(
    argv: Sequence[str],
    user: str | None = None,
    privileged: bool | None = None,
    execvp: ExecFn = os.execvp,
) -> None:
    """Replace the current process with the service binary.

    When running as root and `user` is given, privileges are dropped through
    ``runuser``. Restart-on-crash is the container runtime's job.
    """
    privileged = running_as_root() if privileged is None else privileged
    final = as_user(argv, user, privileged)
    logger.info("Starting %s", " ".join(final))
    sys.stdout.flush()
    sys.stderr.flush()
    execvp(final[0], final)
