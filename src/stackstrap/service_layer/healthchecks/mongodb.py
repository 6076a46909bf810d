"""MongoDB functional check via ``mongosh`` in the container."""

from __future__ import annotations

import logging
import time

from stackstrap.config import HealthCheckSettings
from stackstrap.domain.results import CheckResult, CommandResult
from stackstrap.interfaces.command_runner import CommandRunner

from .base import ContainerExec, Sleep, clean_up, cleanup_result, parse_int, step

logger = logging.getLogger(__name__)

TEST_DATABASE = "stackstrap_test"
TEST_COLLECTION = "checks"

PING_JS = "db.runCommand({ ping: 1 }).ok"
INSERT_JS = (
    f"db.getSiblingDB('{TEST_DATABASE}').{TEST_COLLECTION}"
    ".insertOne({ source: 'stackstrap', at: new Date() }).acknowledged"
)
COUNT_JS = f"db.getSiblingDB('{TEST_DATABASE}').{TEST_COLLECTION}.countDocuments({{}})"
DROP_JS = f"db.getSiblingDB('{TEST_DATABASE}').dropDatabase().ok"


class Mongosh:  # pylint: disable=too-few-public-methods
    def __init__(self, runner: CommandRunner, settings: HealthCheckSettings) -> None:
        self._exec = ContainerExec(runner, settings.mongo_container)
        self._auth: list[str] = []
        if settings.mongo_username and settings.mongo_password:
            self._auth = [
                "-u",
                settings.mongo_username,
                "-p",
                settings.mongo_password,
                "--authenticationDatabase",
                "admin",
            ]

    def eval(self, script: str) -> CommandResult:
        return self._exec("mongosh", "--quiet", *self._auth, "--eval", script)


def check_mongodb(
    runner: CommandRunner,
    settings: HealthCheckSettings,
    *,
    skip_cleanup: bool = False,
    sleep: Sleep = time.sleep,
) -> list[CheckResult]:
    mongo = Mongosh(runner, settings)
    results: list[CheckResult] = []

    ping = mongo.eval(PING_JS)
    if not ping.ok:
        results.append(step("ping", ping))
        return results
    if (ok := parse_int(ping.first_line())) is None:
        results.append(CheckResult("ping", False, "no output from mongosh"))
        return results
    results.append(CheckResult("ping", ok == 1, f"ok={ok}"))
    if ok != 1:
        return results

    # a failed insert may still have created the database
    inserted = mongo.eval(INSERT_JS)
    results.append(step("insert test document", inserted))
    if inserted.ok:
        counted = mongo.eval(COUNT_JS)
        count = parse_int(counted.first_line()) if counted.ok else None
        if count is None:
            results.append(
                CheckResult("count test documents", False, "no count returned")
            )
        else:
            results.append(
                CheckResult("count test documents", count >= 1, f"{count} rows")
            )

    if not skip_cleanup:
        report = clean_up(
            {TEST_DATABASE: lambda: mongo.eval(DROP_JS)},
            attempts=settings.cleanup_attempts,
            backoff=settings.cleanup_backoff,
            sleep=sleep,
        )
        results.append(cleanup_result("drop test database", report))
    return results
