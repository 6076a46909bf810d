"""Bounded polling for container dependencies (files and TCP ports).

Every wait is bounded: `policy.attempts` checks, `policy.interval` seconds
apart, then `DependencyTimeoutError`. Total elapsed time can exceed
attempts × interval when a single check is slow.
"""

from __future__ import annotations

import logging
import socket
import time
from collections.abc import Callable
from pathlib import Path

from stackstrap.config import WaitPolicy
from stackstrap.domain.errors import DependencyTimeoutError

logger = logging.getLogger(__name__)

Sleep = Callable[[float], None]

CONNECT_TIMEOUT = 1.0


def poll(
    check: Callable[[], bool],
    what: str,
    policy: WaitPolicy,
    sleep: Sleep = time.sleep,
) -> int:
    """Call `check` until it returns True or the attempts run out.

    Returns:
        The 1-based attempt on which `check` succeeded.

    Raises:
        DependencyTimeoutError: After exactly `policy.attempts` failed checks.
    """
    for attempt in range(1, policy.attempts + 1):
        if check():
            logger.info("%s is available (attempt %d/%d)", what, attempt, policy.attempts)
            return attempt
        logger.info(
            "%s is not available yet, waiting (attempt %d/%d)",
            what,
            attempt,
            policy.attempts,
        )
        if attempt < policy.attempts:
            sleep(policy.interval)
    raise DependencyTimeoutError(what, policy.attempts, policy.interval)


def port_open(host: str, port: int, timeout: float = CONNECT_TIMEOUT) -> bool:
    """True if a TCP connection to host:port succeeds."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


def await_file(path: Path, policy: WaitPolicy, sleep: Sleep = time.sleep) -> int:
    """Wait until `path` exists as a regular file."""
    return poll(path.is_file, f"file {path}", policy, sleep=sleep)


def await_port(
    host: str,
    port: int,
    policy: WaitPolicy,
    sleep: Sleep = time.sleep,
    probe: Callable[[str, int], bool] = port_open,
) -> int:
    """Wait until `host:port` accepts TCP connections."""
    return poll(lambda: probe(host, port), f"{host}:{port}", policy, sleep=sleep)
