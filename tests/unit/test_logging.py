"""Unit tests for the console and flight-recorder logging helpers."""

import logging

import pytest

from stackstrap.adapters.redactor import Redactor
from stackstrap.entrypoints.cli.main import verbosity_level
from stackstrap.interfaces.redactor import RedactorMode
from stackstrap.logging import (
    ConsoleOptOutFilter,
    SecretScrubFilter,
    config_flight_recorder,
    source_tag,
)

# pylint: disable=magic-value-comparison


def make_record(msg, *args, name="stackstrap.demo", **extra):
    record = logging.LogRecord(name, logging.WARNING, __file__, 1, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.parametrize(
    ("name", "tag"),
    [
        ("stackstrap.service_layer.containers.kafka", "[kafka]"),
        ("stackstrap.service_layer.containers.elasticsearch", "[elasticsearch]"),
        ("stackstrap.service_layer.healthchecks.mongodb", "[mongodb]"),
        ("stackstrap.service_layer.containers.common", ""),
        ("stackstrap.service_layer.healthchecks.base", ""),
        ("stackstrap.service_layer.certificates", ""),
        ("stackstrap", ""),
        ("urllib3.connectionpool", "[urllib3]"),
    ],
)
def test_source_tag(name, tag):
    assert source_tag(name) == tag


class TestSecretScrubFilter:
    @staticmethod
    def test_masks_secret_in_formatted_message():
        record = make_record("keytool failed: %s", "keystore password=hunter2 rejected")

        assert SecretScrubFilter(Redactor()).filter(record)

        assert "hunter2" not in record.getMessage()
        assert "password=***" in record.getMessage()
        assert record.args is None

    @staticmethod
    def test_scrubs_once():
        record = make_record("password=%s", "s3cret")
        scrub = SecretScrubFilter(Redactor())
        scrub.filter(record)
        first = record.getMessage()

        scrub.filter(record)

        assert record.getMessage() == first

    @staticmethod
    def test_strict_mode_masks_usernames():
        record = make_record("login user=elastic")

        SecretScrubFilter(Redactor(RedactorMode.STRICT)).filter(record)

        assert "elastic" not in record.getMessage()

    @staticmethod
    def test_message_with_percent_survives():
        record = make_record("disk %s full", "95%")

        SecretScrubFilter(Redactor()).filter(record)

        assert record.getMessage() == "disk 95% full"


@pytest.mark.parametrize(("console", "kept"), [(None, True), (True, True), (False, False)])
def test_console_opt_out(console, kept):
    record = make_record("x") if console is None else make_record("x", console=console)
    assert ConsoleOptOutFilter().filter(record) is kept


def test_flight_recorder_writes_scrubbed_records(tmp_path):
    path = tmp_path / "logs" / "run.log"
    recorder = config_flight_recorder(path, redactor=Redactor())

    recorder.handle(make_record("sqlcmd said: password=%s", "Sup3r!"))
    recorder.close()

    content = path.read_text(encoding="utf-8")
    assert "password=***" in content
    assert "Sup3r!" not in content


@pytest.mark.parametrize(
    ("verbose", "quiet", "level"),
    [
        (0, 0, logging.WARNING),
        (1, 0, logging.INFO),
        (2, 0, logging.DEBUG),
        (5, 0, logging.DEBUG),
        (0, 1, logging.ERROR),
        (0, 9, logging.CRITICAL),
        (1, 1, logging.WARNING),
    ],
)
def test_verbosity_level(verbose, quiet, level):
    assert verbosity_level(verbose, quiet) == level
