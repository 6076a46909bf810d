"""Container entrypoint commands.

Each command runs the container's pre-start steps and then replaces itself
with the service process (dropping root via ``runuser`` when started as
root). Arguments after ``--`` are appended to the service command line.
With ``--no-exec`` the final command line is printed instead, which is how
images are debugged and how the steps are exercised outside a container.

Examples
    ENTRYPOINT ["stackstrap", "entrypoint", "kafka"]
    $ stackstrap entrypoint kibana --no-exec
"""

from __future__ import annotations

import shlex
from collections.abc import Sequence
from typing import TYPE_CHECKING

import click
import click_extra as clickx

from stackstrap.config import (
    ElasticsearchSettings,
    KafkaSettings,
    KibanaSettings,
    ZookeeperSettings,
)
from stackstrap.service_layer.containers import (
    exec_service,
    prepare_elasticsearch,
    prepare_kafka,
    prepare_kibana,
    prepare_zookeeper,
)

from .helpers import handles_errors

if TYPE_CHECKING:
    from stackstrap.bootstrap import AppContainer

NO_EXEC_OPTION = click.option(
    "--no-exec",
    is_flag=True,
    help="Print the service command line instead of exec'ing it.",
)
SERVICE_ARGS = click.argument("service_args", nargs=-1, type=click.UNPROCESSED)


def _handoff(
    argv: Sequence[str],
    extra: Sequence[str],
    user: str | None,
    privileged: bool,
    no_exec: bool,
) -> None:
    final = [*argv, *extra]
    if no_exec:
        click.echo(shlex.join(final))
        return
    exec_service(final, user=user, privileged=privileged)


@click.group(cls=clickx.ExtraGroup)
def entrypoint() -> None:
    """Container entrypoints (run as the container's PID 1)."""


@entrypoint.command()
@NO_EXEC_OPTION
@SERVICE_ARGS
@click.pass_obj
@handles_errors
def kafka(app: AppContainer, no_exec: bool, service_args: tuple[str, ...]) -> None:
    """Wait for ZooKeeper, render server.properties, start the broker."""
    settings = KafkaSettings.from_env()
    privileged = app.is_privileged()
    argv = prepare_kafka(settings, privileged=privileged)
    _handoff(argv, service_args, settings.run_as, privileged, no_exec)


@entrypoint.command()
@NO_EXEC_OPTION
@SERVICE_ARGS
@click.pass_obj
@handles_errors
def kibana(app: AppContainer, no_exec: bool, service_args: tuple[str, ...]) -> None:
    """Wait for the service token, write it into kibana.yml, start Kibana."""
    settings = KibanaSettings.from_env()
    privileged = app.is_privileged()
    argv = prepare_kibana(settings, privileged=privileged)
    _handoff(argv, service_args, settings.run_as, privileged, no_exec)


@entrypoint.command()
@NO_EXEC_OPTION
@SERVICE_ARGS
@click.pass_obj
@handles_errors
def zookeeper(app: AppContainer, no_exec: bool, service_args: tuple[str, ...]) -> None:
    """Fix data directory permissions, start ZooKeeper."""
    settings = ZookeeperSettings.from_env()
    privileged = app.is_privileged()
    argv = prepare_zookeeper(settings, privileged=privileged)
    _handoff(argv, service_args, settings.run_as, privileged, no_exec)


@entrypoint.command()
@NO_EXEC_OPTION
@SERVICE_ARGS
@click.pass_obj
@handles_errors
def elasticsearch(
    app: AppContainer, no_exec: bool, service_args: tuple[str, ...]
) -> None:
    """Provision Kibana's service token, start Elasticsearch."""
    settings = ElasticsearchSettings.from_env()
    privileged = app.is_privileged()
    argv = prepare_elasticsearch(settings, app.runner, privileged=privileged)
    _handoff(argv, service_args, settings.run_as, privileged, no_exec)
