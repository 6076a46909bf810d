"""End-to-end tests for the top-level `stackstrap` options.

These exercise verbosity flags, logger-level overrides, debug formatting and
the in-memory flight recorder by invoking the test-only `log-demo` command.
"""

import re
from pathlib import Path

import pytest

from stackstrap.entrypoints.cli.main import stackstrap

# pylint: disable=unused-argument

LOG_PATH = "flight_recorder.log"


def assert_in_output(pattern: str, output: str) -> None:
    """Assert that regex `pattern` is found in `output`."""
    if not re.search(pattern, output, re.MULTILINE):
        raise AssertionError(f"Pattern '{pattern}' not found in output:\n{output}")


def assert_not_in_output(pattern: str, output: str) -> None:
    """Assert that regex `pattern` is NOT found in `output`."""
    if re.search(pattern, output, re.MULTILINE):
        raise AssertionError(f"Pattern '{pattern}' found in output:\n{output}")


def read_log(path: str = LOG_PATH) -> str:
    return Path(path).read_text(encoding="utf-8")


@pytest.mark.parametrize(
    ("flags", "shown", "hidden"),
    [
        ([], "WARNING", "INFO"),
        (["-v"], "INFO", "DEBUG"),
        (["-q"], "ERROR", "WARNING"),
        (["-qq"], "CRITICAL", "ERROR"),
    ],
    ids=["default", "verbose", "quiet", "very-quiet"],
)
def test_console_verbosity(registered_log_demo, runner, fs, flags, shown, hidden):
    """Each -v/-q moves the console threshold one level from WARNING."""
    result = runner.invoke(stackstrap, [*flags, "--log-path", LOG_PATH, "log-demo"])
    assert result.exit_code == 0
    assert_in_output(shown, result.output)
    assert_not_in_output(hidden, result.output)


def test_vv_shows_debug(registered_log_demo, runner, fs):
    result = runner.invoke(stackstrap, ["-vv", "--log-path", LOG_PATH, "log-demo"])
    assert result.exit_code == 0
    assert_in_output("DEBUG", result.output)


@pytest.mark.parametrize(
    ("env", "cli_args"),
    [
        ({}, ["-vv", "-L", "some.thirdparty=INFO"]),
        ({"STACKSTRAP_LOGGER_LEVELS": "some.thirdparty=INFO"}, ["-vv"]),
    ],
    ids=["cli-flag", "env-var"],
)
def test_logger_level_silences_debug(registered_log_demo, runner, fs, env, cli_args):
    """Logger-level overrides silence third-party DEBUG while keeping INFO+."""
    result = runner.invoke(
        stackstrap, [*cli_args, "--log-path", LOG_PATH, "log-demo"], env=env
    )
    assert result.exit_code == 0
    assert_not_in_output("This is a debug-level third-party test message.", result.output)
    assert_in_output("This is an info-level third-party test message.", result.output)


@pytest.mark.parametrize(("flags", "shown"), [(["--debug"], True), ([], False)])
def test_debug_mode_shows_source_locations(registered_log_demo, runner, fs, flags, shown):
    result = runner.invoke(stackstrap, [*flags, "--log-path", LOG_PATH, "log-demo"])
    assert result.exit_code == 0
    check = assert_in_output if shown else assert_not_in_output
    check(r"conftest\.py:\d+\b", result.output)


def test_flight_recorder_flush_on_warning(registered_log_demo, runner, fs):
    """Buffered DEBUG records reach the file once a WARNING is logged."""
    result = runner.invoke(
        stackstrap,
        ["--log-path", LOG_PATH, "-L", "some.thirdparty=INFO", "log-demo"],
    )
    assert result.exit_code == 0
    content = read_log()
    assert_in_output("This is a debug-level test message.", content)
    assert_not_in_output("This is a debug-level third-party test message.", content)
    assert_in_output("This is an info-level third-party test message.", content)
    assert_in_output("This is a critical-level test message.", content)
    # DEBUG after the last WARNING stays in the buffer
    assert_not_in_output("This is a final debug-level test message.", content)


@pytest.mark.parametrize(
    ("env", "cli_args"),
    [({}, ["--force-flush"]), ({"STACKSTRAP_FORCE_FLUSH_FLIGHT_RECORDER": "true"}, [])],
    ids=["cli-flag", "env-var"],
)
def test_flight_recorder_force_flush(registered_log_demo, runner, fs, env, cli_args):
    result = runner.invoke(
        stackstrap, ["--log-path", LOG_PATH, *cli_args, "log-demo"], env=env
    )
    assert result.exit_code == 0
    assert_in_output("This is a final debug-level test message.", read_log())


@pytest.mark.parametrize(
    ("env", "cli_args"),
    [({}, ["--no-flight-recorder"]), ({"STACKSTRAP_FLIGHT_RECORDER": "0"}, [])],
    ids=["cli-flag", "env-var"],
)
def test_flight_recorder_can_be_disabled(registered_log_demo, runner, fs, env, cli_args):
    result = runner.invoke(
        stackstrap, ["--log-path", LOG_PATH, *cli_args, "log-demo"], env=env
    )
    assert result.exit_code == 0
    assert not Path(LOG_PATH).exists()


def test_flight_recorder_log_dir_is_created(registered_log_demo, runner, fs):
    result = runner.invoke(stackstrap, ["--log-path", "logs/nested/run.log", "log-demo"])
    assert result.exit_code == 0
    assert Path("logs/nested/run.log").is_file()


def test_flight_recorder_truncates_log(registered_log_demo, runner, fs):
    """The log file is rewritten on each run, not appended to."""
    sizes = []
    for _ in range(2):
        result = runner.invoke(stackstrap, ["--log-path", LOG_PATH, "log-demo"])
        assert result.exit_code == 0
        sizes.append(len(read_log().splitlines()))
    assert sizes[0] == sizes[1]


def test_startup_logging(registered_log_demo, runner, fs):
    result = runner.invoke(
        stackstrap,
        ["--log-path", LOG_PATH, "--flight-recorder", "--force-flush", "log-demo"],
    )
    assert result.exit_code == 0
    content = read_log()
    assert_in_output(r"STACKSTRAP \d+\.\d+\.\d+", content)
    assert_in_output(r"console=WARNING", content)
    assert_in_output(r"flight-recorder=ON", content)
    assert_in_output(r"Python: \d+\.\d+\.\d+", content)
    assert_in_output(r"Platform: .+", content)
    assert_in_output(r"PID: \d+", content)
    assert_in_output(r"cryptography: \d+\.\d+", content)
    assert_in_output(r"PyYAML: \d+\.\d+", content)
    assert_in_output(r"Handlers: .+", content)
    assert_in_output(
        r"Flight recorder: path=flight_recorder\.log, capacity=2000, flush_on_close=True",
        content,
    )
    assert_in_output(r"Per-logger overrides: <none>", content)
    assert_in_output(r"Redactor mode: lenient", content)


def test_startup_logging_lists_overrides(registered_log_demo, runner, fs):
    result = runner.invoke(
        stackstrap,
        ["--log-path", LOG_PATH, "--force-flush", "log-demo"],
        env={"STACKSTRAP_LOGGER_LEVELS": "some.thirdparty=INFO"},
    )
    assert result.exit_code == 0
    assert_in_output(r"Per-logger overrides: \{'some.thirdparty': 'INFO'\}", read_log())
