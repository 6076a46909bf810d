"""Unit tests for bounded dependency waits."""

from pathlib import Path

import pytest

from stackstrap.config import WaitPolicy
from stackstrap.domain.errors import DependencyTimeoutError
from stackstrap.service_layer.waiters import await_file, await_port, poll


def test_poll_raises_after_exactly_attempts_checks(no_sleep):
    calls = []

    def check():
        calls.append(1)
        return False

    with pytest.raises(DependencyTimeoutError) as exc_info:
        poll(check, "thing", WaitPolicy(attempts=4, interval=2.0), sleep=no_sleep.append)

    assert len(calls) == 4
    # no sleep after the final failed check
    assert no_sleep == [2.0, 2.0, 2.0]
    assert exc_info.value.attempts == 4


def test_poll_returns_attempt_number(no_sleep):
    answers = iter([False, False, True])
    attempt = poll(lambda: next(answers), "thing", WaitPolicy(5, 1.0), sleep=no_sleep.append)
    assert attempt == 3
    assert no_sleep == [1.0, 1.0]


def test_await_file_never_proceeds_before_file_exists(tmp_path: Path):
    token_file = tmp_path / "token.txt"
    seen_before_sleep = []

    def sleep(_interval: float) -> None:
        seen_before_sleep.append(token_file.exists())
        if len(seen_before_sleep) == 2:
            token_file.write_text("abc")

    attempt = await_file(token_file, WaitPolicy(10, 5.0), sleep=sleep)

    assert attempt == 3
    assert seen_before_sleep == [False, False]


def test_await_file_ignores_directories(tmp_path: Path, no_sleep):
    (tmp_path / "token.txt").mkdir()
    with pytest.raises(DependencyTimeoutError):
        await_file(tmp_path / "token.txt", WaitPolicy(2, 0.1), sleep=no_sleep.append)


def test_await_port_uses_probe(no_sleep):
    probed = []

    def probe(host: str, port: int) -> bool:
        probed.append((host, port))
        return len(probed) == 2

    assert await_port("zookeeper", 2181, WaitPolicy(3, 2.0), sleep=no_sleep.append, probe=probe) == 2
    assert probed == [("zookeeper", 2181), ("zookeeper", 2181)]


def test_await_port_times_out(no_sleep):
    with pytest.raises(DependencyTimeoutError, match="zookeeper:2181"):
        await_port(
            "zookeeper",
            2181,
            WaitPolicy(3, 2.0),
            sleep=no_sleep.append,
            probe=lambda host, port: False,
        )
