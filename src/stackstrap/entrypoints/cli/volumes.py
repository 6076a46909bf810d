"""Maintenance of the stack's bind-mounted directories.

Commands
- `reset` : Optionally ``docker compose down -v`` and prune volumes, then
            empty and recreate every service directory under ``--root``.
            Destructive; prompts for confirmation unless ``--force``.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click
import click_extra as clickx

from stackstrap.service_layer.volumes import STACK_DIRECTORIES, reset_volumes

from .helpers import handles_errors, success, warn

if TYPE_CHECKING:
    from stackstrap.bootstrap import AppContainer

RESET_WARNING = (
    "This deletes all data under the service directories "
    "(Elasticsearch indices, Kafka logs, MongoDB and SQL Server databases)."
)


@click.group(cls=clickx.ExtraGroup)
def volumes() -> None:
    """Reset the stack's data directories."""


@volumes.command()
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Project root holding the per-service directories.",
)
@click.option(
    "--skip-docker",
    is_flag=True,
    help="Do not stop containers or prune docker volumes first.",
)
@click.option("--force", is_flag=True, help="Reset without confirmation.")
@click.pass_obj
@handles_errors
def reset(app: AppContainer, root: Path, skip_docker: bool, force: bool) -> None:
    """Empty and recreate every service data directory."""
    if not force:
        warn(RESET_WARNING)
        click.secho(f"root: {click.style(str(root.resolve()), underline=True)}", err=True)
        click.confirm("Are you sure you want to proceed?", abort=True)

    report = reset_volumes(
        root,
        runner=None if skip_docker else app.runner,
        directories=STACK_DIRECTORIES,
    )
    for command in report.docker_failures:
        warn(f"'{command}' failed; continuing")
    success(f"Reset {len(report.recreated)} directories under {root}")
    click.echo("Start the stack with: docker compose up -d", err=True)
