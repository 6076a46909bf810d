"""STACKSTRAP CLI entry point.

Defines the top-level ``stackstrap`` command (via Click-Extra) and registers
the subcommand groups.

Groups
- ``stackstrap certs``: local CA and per-service TLS material.
- ``stackstrap entrypoint``: container entrypoints (run as PID 1).
- ``stackstrap check``: post-startup functional checks via ``docker exec``.
- ``stackstrap volumes``: reset the stack's bind-mounted directories.

Notes
- The CLI version is sourced from `stackstrap.__version__` and displayed
  by Click-Extra (``--version``).
- The adapters for the running platform are wired once here and handed to
  subcommands as ``ctx.obj``.

Examples
    $ stackstrap certs generate
    $ stackstrap -v check all
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import click
import click_extra as clickx
from platformdirs import user_log_dir

from stackstrap import __version__
from stackstrap.bootstrap import bootstrap
from stackstrap.logging import config_console_handler, config_flight_recorder, log_startup

from .certs import certs as certs_group
from .check import check as check_command
from .entrypoint import entrypoint as entrypoint_group
from .helpers import hyperlink
from .helpers.log_level_parser import parse_log_level
from .volumes import volumes as volumes_group

if TYPE_CHECKING:
    from logging import Handler

logger = logging.getLogger(__name__)


HELP = """STACKSTRAP command-line interface.

    Bootstrap tooling for the local Elasticsearch / Kibana / Kafka / ZooKeeper /
    MongoDB / SQL Server stack: a private CA and per-service TLS material,
    container entrypoints that wait for their dependencies and render service
    config, and functional checks once the stack is up.
    """


EPILOG = "\b\n" + "\n".join(
    [
        f"{click.style('See Also:', fg='blue', bold=True, underline=True)}",
        "  Kafka config : "
        + hyperlink("https://kafka.apache.org/documentation/#brokerconfigs"),
        "  ES tokens    : "
        + hyperlink(
            "https://www.elastic.co/guide/en/elasticsearch/reference/current/service-tokens-command.html"
        ),
    ]
)


def verbosity_level(verbose_count: int, quiet_count: int) -> int:
    """Shift the WARNING default by one level per -v or -q, clamped to DEBUG..CRITICAL."""
    level = logging.WARNING - 10 * verbose_count + 10 * quiet_count
    return max(logging.DEBUG, min(logging.CRITICAL, level))


@clickx.extra_group(
    version=__version__,
    help=HELP,
    params=[
        clickx.ColorOption(show_envvar=True),
        clickx.TimerOption(show_envvar=True),
        clickx.ExtraVersionOption(),
    ],
    epilog=EPILOG,
)
@click.option(
    "--verbose",
    "-v",
    "verbose_count",
    count=True,
    help=(
        "Increase the default WARNING verbosity by one level "
        "for each additional repetition of the option."
    ),
    default=0,
)
@click.option(
    "--quiet",
    "-q",
    "quiet_count",
    count=True,
    help=(
        "Decrease the default WARNING verbosity by one level "
        "for each additional repetition of the option."
    ),
    default=0,
)
@click.option(
    "--debug/--no-debug",
    is_flag=True,
    help="Enable debug mode (timestamps and source locations on the console).",
    default=False,
)
@click.option(
    "--log-path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to log file (overrides default flight recorder path).",
    default=Path(user_log_dir("stackstrap", appauthor=False)) / "latest.log",
    envvar="STACKSTRAP_LOG_PATH",
    show_default=True,
    show_envvar=True,
)
@click.option(
    "--flight-recorder-capacity",
    type=int,
    default=2000,
    hidden=True,
    envvar="STACKSTRAP_FLIGHT_RECORDER_CAPACITY",
    show_envvar=True,
    help="Capacity of the flight recorder (in number of log records).",
)
@click.option(
    "--flight-recorder/--no-flight-recorder",
    "flight_recorder",
    is_flag=True,
    help=(
        "Keep the last N log records (STACKSTRAP_FLIGHT_RECORDER_CAPACITY) at "
        "DEBUG granularity, unaffected by -v/-q, and write them to --log-path "
        "when a WARNING/ERROR occurs, or on clean exit if --force-flush is set."
    ),
    default=True,
    envvar="STACKSTRAP_FLIGHT_RECORDER",
    show_envvar=True,
)
@click.option(
    "--force-flush/--no-force-flush",
    "force_flush_flight_recorder",
    is_flag=True,
    help=(
        "Write the flight recorder buffer to --log-path on exit even if no "
        "WARNING/ERROR occurred."
    ),
    default=False,
    envvar="STACKSTRAP_FORCE_FLUSH_FLIGHT_RECORDER",
    show_default=True,
    show_envvar=True,
)
@click.option(
    "-L",
    "--logger-level",
    "logger_levels",
    multiple=True,
    callback=parse_log_level,
    help=(
        "Set MINIMUM LEVEL for specific LOGGERS (NAME=LEVEL). Applies to both "
        "console and flight recorder. Repeatable (e.g. -L stackstrap.service_layer=INFO) "
        "or via STACKSTRAP_LOGGER_LEVELS (comma/space list)."
    ),
    default=(),
    envvar="STACKSTRAP_LOGGER_LEVELS",
    show_envvar=True,
)
@click.option(
    "--redactor-mode",
    "redactor_mode",
    type=click.Choice(["lenient", "strict"], case_sensitive=False),
    help=(
        "Redaction applied to logged command lines. "
        "'lenient' masks passwords/tokens; 'strict' also masks usernames."
    ),
    default="lenient",
    envvar="STACKSTRAP_REDACTOR_MODE",
    show_envvar=True,
    show_default=True,
)
@clickx.pass_context
def stackstrap(  # pylint: disable=too-many-arguments, too-many-locals, too-many-positional-arguments
    ctx: click.Context,
    verbose_count: int,
    quiet_count: int,
    debug: bool,
    log_path: Path,
    flight_recorder_capacity: int,
    flight_recorder: bool,
    force_flush_flight_recorder: bool,
    logger_levels: dict[str, int],
    redactor_mode: str,
) -> None:
    """STACKSTRAP command-line interface."""
    app = bootstrap(redactor_mode.lower())
    level = verbosity_level(verbose_count, quiet_count)

    handlers: list[Handler] = [
        config_console_handler(
            level=level,
            debug_mode=debug,
            color=ctx.color is not False,
            redactor=app.redactor,
        )
    ]
    if flight_recorder:
        handlers.append(
            config_flight_recorder(
                path=log_path,
                capacity=flight_recorder_capacity,
                flush_on_close=force_flush_flight_recorder,
                redactor=app.redactor,
            )
        )

    # root passes everything; levels are enforced per handler and per logger
    logging.basicConfig(level=logging.DEBUG, handlers=handlers, force=True)
    for name, lvl in logger_levels.items():
        logging.getLogger(name).setLevel(lvl)

    log_startup(
        logger,
        app_version=__version__,
        level=level,
        handlers=handlers,
        log_path=log_path,
        flight_recorder=flight_recorder,
        flight_capacity=flight_recorder_capacity if flight_recorder else None,
        force_flush_fr=force_flush_flight_recorder,
        logger_levels=logger_levels,
        redactor_mode=app.redactor.mode.value,
    )

    ctx.obj = app
    ctx.call_on_close(logging.shutdown)


for _group in (certs_group, entrypoint_group, check_command, volumes_group):
    stackstrap.add_command(_group)
