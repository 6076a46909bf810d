"""Post-startup functional checks.

Each check drives the service's own CLI inside its container through
``docker exec`` (``kafka-topics.sh``, ``mongosh``, ``sqlcmd``), creates a
throwaway resource, reads it back and cleans it up. Results are printed as
a table; the command exits 1 when any step failed.

Examples
    $ stackstrap check all
    $ stackstrap check kafka --container my-kafka --skip-cleanup
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.table import Table

from stackstrap.config import HealthCheckSettings
from stackstrap.domain.errors import StackstrapError
from stackstrap.domain.results import CheckResult
from stackstrap.service_layer.healthchecks import (
    check_kafka,
    check_mongodb,
    check_sqlserver,
)

from .helpers import error, handles_errors, success, warn

if TYPE_CHECKING:
    from stackstrap.bootstrap import AppContainer

logger = logging.getLogger(__name__)

Check = Callable[..., list[CheckResult]]

CHECKS: dict[str, tuple[Check, str]] = {
    "kafka": (check_kafka, "kafka_container"),
    "mongodb": (check_mongodb, "mongo_container"),
    "sqlserver": (check_sqlserver, "sql_container"),
}


def render_results(results: dict[str, list[CheckResult]]) -> Table:
    table = Table(title="Health checks")
    table.add_column("Service")
    table.add_column("Step")
    table.add_column("Result")
    table.add_column("Detail")
    for service, steps in results.items():
        for result in steps:
            status = "[green]PASS[/]" if result.passed else "[red]FAIL[/]"
            if result.passed and result.warnings:
                status = "[yellow]PASS*[/]"
            table.add_row(service, result.name, status, result.detail)
    return table


@click.command()
@click.argument("service", type=click.Choice([*CHECKS, "all"], case_sensitive=False))
@click.option(
    "--container",
    default=None,
    help="Container to exec into (overrides KAFKA_/MONGO_/MSSQL_CONTAINER).",
)
@click.option(
    "--skip-cleanup",
    is_flag=True,
    help="Leave test topics, documents and tables in place for inspection.",
)
@click.pass_obj
@handles_errors
def check(
    app: AppContainer, service: str, container: str | None, skip_cleanup: bool
) -> None:
    """Run functional checks against running containers."""
    service = service.lower()
    if container and service == "all":
        raise click.UsageError("--container needs a single service, not 'all'.")

    settings = HealthCheckSettings.from_env()
    names = list(CHECKS) if service == "all" else [service]

    results: dict[str, list[CheckResult]] = {}
    for name in names:
        run_check, container_field = CHECKS[name]
        service_settings = (
            dataclasses.replace(settings, **{container_field: container})
            if container
            else settings
        )
        try:
            results[name] = run_check(
                app.runner, service_settings, skip_cleanup=skip_cleanup
            )
        except StackstrapError as exc:
            logger.warning("%s check could not run: %s", name, exc)
            results[name] = [CheckResult("run check", False, str(exc))]

    Console().print(render_results(results))

    for name, steps in results.items():
        for result in steps:
            for warning in result.warnings:
                warn(f"{name}: {warning}")

    failed = [name for name, steps in results.items() if not all(r.passed for r in steps)]
    if failed:
        error(f"Checks failed: {', '.join(failed)}")
        raise click.exceptions.Exit(1)
    success("All checks passed")
