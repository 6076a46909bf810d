"""Logging setup shared by every STACKSTRAP command.

Two sinks are attached to the root logger:

* a Rich console handler on stderr, whose records carry a short source tag
  (``[kafka]`` for the Kafka entrypoint and check, ``[urllib3]`` for
  third-party libraries) so interleaved ``docker logs`` output stays
  readable;
* a flight recorder: a `MemoryHandler` that keeps recent DEBUG records and
  writes them to a file once something goes wrong.

Both sinks pass records through `SecretScrubFilter` first. Tool stderr is
logged verbatim on failure, and keytool/sqlcmd errors may echo a password.
"""

from __future__ import annotations

import logging
import os
import platform
import sys
from logging.handlers import MemoryHandler
from pathlib import Path
from typing import TYPE_CHECKING, Literal, TypeAlias

import cryptography
import yaml
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from logging import Logger

    from stackstrap.interfaces.redactor import Redactor

# pylint: disable=too-few-public-methods

PROJECT_PREFIX = "stackstrap"

# Packages whose child modules are named after the service they handle.
SERVICE_PACKAGES = (
    "stackstrap.service_layer.containers.",
    "stackstrap.service_layer.healthchecks.",
)
SHARED_MODULES = frozenset({"base", "common"})

FLIGHT_RECORDER_FORMAT = (
    "[%(asctime)s] [%(process)d] %(levelname)s %(name)s:%(lineno)d: %(message)s"
)

ColorSystem: TypeAlias = Literal["auto", "standard", "256", "truecolor", "windows"]


def source_tag(logger_name: str) -> str:
    """Return the console tag for records from `logger_name`.

    >>> source_tag("stackstrap.service_layer.containers.kafka")
    '[kafka]'
    >>> source_tag("stackstrap.service_layer.certificates")
    ''
    >>> source_tag("urllib3.connectionpool")
    '[urllib3]'
    """
    if not logger_name.startswith(PROJECT_PREFIX):
        return f"[{logger_name.split('.')[0]}]"
    for package in SERVICE_PACKAGES:
        if logger_name.startswith(package):
            service = logger_name[len(package) :].split(".")[0]
            return "" if service in SHARED_MODULES else f"[{service}]"
    return ""


class SourceTagFilter(logging.Filter):
    """Set `record.prefix` from `source_tag`. Never drops a record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.prefix = source_tag(record.name)
        return True


class ConsoleOptOutFilter(logging.Filter):
    """Keep records logged with ``extra={"console": False}`` off the console."""

    def filter(self, record: logging.LogRecord) -> bool:
        return getattr(record, "console", True)


class SecretScrubFilter(logging.Filter):
    """Replace each record's message with its redacted rendering.

    The record is rewritten in place (``msg`` becomes the sanitized text and
    ``args`` is cleared), so a record seen by several handlers is scrubbed
    once and stays scrubbed.
    """

    def __init__(self, redactor: Redactor) -> None:
        super().__init__()
        self._redactor = redactor

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "scrubbed", False):
            return True
        record.msg = self._redactor.sanitize_text(record.getMessage())
        record.args = None
        record.scrubbed = True
        return True


def config_console_handler(
    level: int = logging.INFO,
    debug_mode: bool = False,
    color: bool = True,
    redactor: Redactor | None = None,
) -> RichHandler:
    """Build the stderr console handler.

    stdout is left to command output (verification tables, the manual
    trust-store commands) so it can be piped. In debug mode the handler
    drops to DEBUG and shows timestamps, logger names and source locations.
    """
    color_system: ColorSystem | None = "auto" if color else None
    level = logging.DEBUG if debug_mode else level

    handler = RichHandler(
        level=level,
        console=Console(color_system=color_system, stderr=True),
        rich_tracebacks=True,
        show_time=False,
        show_path=debug_mode,
        enable_link_path=debug_mode,
    )
    if debug_mode:
        handler.setFormatter(logging.Formatter("%(asctime)s %(name)s: %(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(prefix)s %(message)s"))
        handler.addFilter(SourceTagFilter())

    if redactor is not None:
        handler.addFilter(SecretScrubFilter(redactor))
    handler.addFilter(ConsoleOptOutFilter())
    return handler


def config_flight_recorder(
    path: Path,
    capacity: int = 2000,
    flush_level: int = logging.WARNING,
    flush_on_close: bool = False,
    redactor: Redactor | None = None,
) -> MemoryHandler:
    """Build the flight recorder writing to `path`.

    Up to `capacity` records are buffered. The buffer is written out (the
    file is truncated first) when a record at `flush_level` or above
    arrives, and on close only if `flush_on_close` is set.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    target = logging.FileHandler(path, mode="w", encoding="utf-8")
    target.setLevel(logging.DEBUG)
    target.setFormatter(logging.Formatter(FLIGHT_RECORDER_FORMAT))

    recorder = MemoryHandler(
        capacity=capacity,
        flushLevel=flush_level,
        target=target,
        flushOnClose=flush_on_close,
    )
    if redactor is not None:
        recorder.addFilter(SecretScrubFilter(redactor))
    return recorder


def _environment_diagnostics() -> list[tuple[str, object]]:
    rows: list[tuple[str, object]] = [
        ("Python", sys.version.split()[0]),
        ("Platform", f"{platform.system()} {platform.release()}"),
        ("PID", os.getpid()),
        ("CWD", Path.cwd()),
    ]
    # entrypoints only drop privileges when started as root
    if hasattr(os, "geteuid"):
        rows.append(("EUID", os.geteuid()))
    rows.append(("cryptography", cryptography.__version__))
    rows.append(("PyYAML", yaml.__version__))
    return rows


def log_startup(  # pylint: disable=too-many-arguments
    logger: Logger,
    *,
    app_version: str,
    level: int,
    handlers: list[logging.Handler],
    log_path: Path | None,
    flight_recorder: bool,
    flight_capacity: int | None,
    force_flush_fr: bool,
    logger_levels: dict[str, int],
    redactor_mode: str,
) -> None:
    """Log a one-line INFO summary followed by DEBUG diagnostics."""
    logger.info(
        "STACKSTRAP %s - console=%s, flight-recorder=%s",
        app_version,
        logging.getLevelName(level),
        "ON" if flight_recorder else "OFF",
    )

    for label, value in _environment_diagnostics():
        logger.debug("%s: %s", label, value)

    logger.debug("Handlers: %s", [type(h).__name__ for h in handlers])
    if flight_recorder:
        logger.debug(
            "Flight recorder: path=%s, capacity=%s, flush_on_close=%s",
            log_path or "<none>",
            flight_capacity,
            force_flush_fr,
        )
    overrides = {name: logging.getLevelName(lvl) for name, lvl in logger_levels.items()}
    logger.debug("Per-logger overrides: %s", overrides or "<none>")
    logger.debug("Redactor mode: %s", redactor_mode)
