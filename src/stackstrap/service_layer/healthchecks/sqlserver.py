"""SQL Server functional check via ``sqlcmd`` in the container."""

from __future__ import annotations

import datetime as dt
import logging
import time

from stackstrap.config import HealthCheckSettings
from stackstrap.domain.errors import MissingSettingError
from stackstrap.domain.results import CheckResult, CommandResult
from stackstrap.interfaces.command_runner import CommandRunner

from .base import ContainerExec, Sleep, clean_up, cleanup_result, parse_int, step

logger = logging.getLogger(__name__)

# master, tempdb, model, msdb
SYSTEM_DATABASES = 4
COUNT_DATABASES_SQL = "SET NOCOUNT ON; SELECT COUNT(*) FROM sys.databases"


class Sqlcmd:  # pylint: disable=too-few-public-methods
    def __init__(
        self, runner: CommandRunner, settings: HealthCheckSettings, password: str
    ) -> None:
        self._exec = ContainerExec(runner, settings.sql_container)
        self._tool = settings.sqlcmd_path
        self._password = password

    def query(self, sql: str) -> CommandResult:
        return self._exec(
            self._tool,
            "-S",
            "localhost",
            "-U",
            "sa",
            "-P",
            self._password,
            "-C",
            "-b",
            "-h",
            "-1",
            "-W",
            "-Q",
            sql,
        )


def check_sqlserver(
    runner: CommandRunner,
    settings: HealthCheckSettings,
    *,
    skip_cleanup: bool = False,
    sleep: Sleep = time.sleep,
    now: dt.datetime | None = None,
) -> list[CheckResult]:
    """Count system databases, then round-trip a row through a tempdb table.

    Raises:
        MissingSettingError: If no SA password is configured.
    """
    if not settings.sql_password:
        raise MissingSettingError("MSSQL_SA_PASSWORD")
    sql = Sqlcmd(runner, settings, settings.sql_password)
    results: list[CheckResult] = []

    counted = sql.query(COUNT_DATABASES_SQL)
    if not counted.ok:
        results.append(step("count databases", counted))
        return results
    if (databases := parse_int(counted.first_line())) is None:
        results.append(CheckResult("count databases", False, "no row count returned"))
        return results
    results.append(
        CheckResult(
            "count databases", databases >= SYSTEM_DATABASES, f"{databases} databases"
        )
    )

    now = now or dt.datetime.now(dt.timezone.utc)
    table = f"tempdb.dbo.stackstrap_check_{int(now.timestamp())}"
    created = sql.query(
        f"SET NOCOUNT ON; CREATE TABLE {table} (id INT PRIMARY KEY, note NVARCHAR(50)); "
        f"INSERT INTO {table} VALUES (1, N'stackstrap'); SELECT COUNT(*) FROM {table}"
    )
    # the batch is not atomic: the table can exist even if the INSERT failed
    if not created.ok:
        results.append(step("write test row", created))
    else:
        rows = parse_int(created.first_line())
        results.append(
            CheckResult(
                "write test row",
                rows == 1,
                "no row count returned" if rows is None else f"{rows} rows",
            )
        )

    if not skip_cleanup:
        report = clean_up(
            {table: lambda: sql.query(f"DROP TABLE IF EXISTS {table}")},
            attempts=settings.cleanup_attempts,
            backoff=settings.cleanup_backoff,
            sleep=sleep,
        )
        results.append(cleanup_result("drop test table", report))
    return results
