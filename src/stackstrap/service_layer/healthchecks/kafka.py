"""Kafka functional check: list, create, verify, delete a test topic."""

from __future__ import annotations

import datetime as dt
import logging
import time

from stackstrap.config import HealthCheckSettings
from stackstrap.domain.results import CheckResult, CommandResult
from stackstrap.interfaces.command_runner import CommandRunner

from .base import ContainerExec, Sleep, clean_up, cleanup_result, step

logger = logging.getLogger(__name__)

TEST_TOPIC_PREFIX = "artemis-test-"


class KafkaTopics:
    """``kafka-topics.sh`` inside the broker container."""

    def __init__(self, runner: CommandRunner, settings: HealthCheckSettings) -> None:
        self._exec = ContainerExec(runner, settings.kafka_container)
        self._tool = f"{settings.kafka_bin_dir.rstrip('/')}/kafka-topics.sh"
        self._bootstrap = settings.kafka_bootstrap_server

    def _run(self, *args: str) -> CommandResult:
        return self._exec(self._tool, "--bootstrap-server", self._bootstrap, *args)

    def list(self) -> CommandResult:
        return self._run("--list")

    def create(self, topic: str) -> CommandResult:
        return self._run(
            "--create",
            "--topic",
            topic,
            "--partitions",
            "1",
            "--replication-factor",
            "1",
        )

    def delete(self, topic: str) -> CommandResult:
        return self._run("--delete", "--topic", topic)


def check_kafka(
    runner: CommandRunner,
    settings: HealthCheckSettings,
    *,
    skip_cleanup: bool = False,
    sleep: Sleep = time.sleep,
    now: dt.datetime | None = None,
) -> list[CheckResult]:
    topics = KafkaTopics(runner, settings)
    results: list[CheckResult] = []

    listed = topics.list()
    results.append(step("list topics", listed, f"{len(listed.lines())} topics"))
    if not listed.ok:
        return results

    now = now or dt.datetime.now(dt.timezone.utc)
    topic = f"{TEST_TOPIC_PREFIX}{int(now.timestamp())}"
    created = topics.create(topic)
    results.append(step(f"create topic {topic}", created))
    if not created.ok:
        return results

    after = topics.list()
    if not after.lines():
        results.append(CheckResult("topic visible", False, "topic list is empty"))
    elif topic in after.lines():
        results.append(CheckResult("topic visible", True, topic))
    else:
        results.append(CheckResult("topic visible", False, f"{topic} not listed"))

    if skip_cleanup:
        logger.info("Skipping cleanup of %s", topic)
        return results

    # leftovers from earlier runs that were skipped or only partly cleaned
    leftovers = [t for t in after.lines() if t.startswith(TEST_TOPIC_PREFIX)]
    to_delete = list(dict.fromkeys([topic, *leftovers]))
    report = clean_up(
        {name: _deleter(topics, name) for name in to_delete},
        attempts=settings.cleanup_attempts,
        backoff=settings.cleanup_backoff,
        sleep=sleep,
    )
    results.append(cleanup_result("delete test topics", report))
    return results


def _deleter(topics: KafkaTopics, topic: str):
    return lambda: topics.delete(topic)
