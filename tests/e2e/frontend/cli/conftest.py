"""Fixtures for end-to-end CLI tests.

Provides a test-only `log-demo` command for the logging tests, a CliRunner
inside an isolated filesystem, and `fake_app`, which swaps the platform
adapters wired by `bootstrap` for a scripted runner and an unprivileged,
sandboxed trust store.
"""

import logging
from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from stackstrap.adapters.redactor import Redactor
from stackstrap.adapters.trust_store import LinuxTrustStore
from stackstrap.bootstrap import AppContainer
from stackstrap.entrypoints.cli import main
from stackstrap.entrypoints.cli.main import stackstrap

# pylint: disable=redefined-outer-name


@click.command()
def log_demo():
    """Emit one message per level on 'stackstrap.demo' and a third-party logger."""
    logger = logging.getLogger("stackstrap.demo")
    logger.debug("This is a debug-level test message.")
    logger.info("This is an info-level test message.")
    logger.warning("This is a warning-level test message.")
    logger.error("This is an error-level test message.")
    logger.critical("This is a critical-level test message.")
    third_party_logger = logging.getLogger("some.thirdparty")
    third_party_logger.debug("This is a debug-level third-party test message.")
    third_party_logger.info("This is an info-level third-party test message.")
    third_party_logger.warning("This is a warning-level third-party test message.")
    logger.debug("This is a final debug-level test message.")


def _remove_command_everywhere(group, name: str) -> None:
    """Remove a command from a Click group and any Click-Extra sections."""
    group.commands.pop(name, None)
    if hasattr(group, "_default_section"):
        group._default_section.commands.pop(name, None)  # pylint: disable=protected-access
    for sec in getattr(group, "_sections", []):
        getattr(sec, "commands", {}).pop(name, None)


@pytest.fixture
def registered_log_demo():
    """Register 'log-demo' on the top-level group for the duration of a test."""
    stackstrap.add_command(log_demo, name="log-demo")
    try:
        yield
    finally:
        _remove_command_everywhere(stackstrap, "log-demo")


@pytest.fixture
def runner():
    """Return a Click CliRunner for invoking CLI commands in tests."""
    return CliRunner()


@pytest.fixture
def fs(runner):
    """Run the test inside ``runner.isolated_filesystem()``."""
    with runner.isolated_filesystem():
        yield


@pytest.fixture
def fake_app(monkeypatch, fake_runner, fs):
    """Make every CLI invocation use `fake_runner` and an unprivileged user.

    The Linux trust store writes its anchors under ``./anchors`` in the
    isolated filesystem.
    """
    app = AppContainer(
        runner=fake_runner,
        redactor=Redactor(),
        trust_store=LinuxTrustStore(anchor_dir=Path("anchors")),
        is_privileged=lambda: False,
    )
    monkeypatch.setattr(main, "bootstrap", lambda redactor_mode: app)
    return app


@pytest.fixture
def invoke(runner, fake_app):
    """Invoke ``stackstrap`` with the flight recorder writing into the sandbox."""

    def _invoke(args, env=None, **kwargs):
        merged = {"STACKSTRAP_LOG_PATH": "stackstrap.log", **(env or {})}
        return runner.invoke(stackstrap, args, env=merged, **kwargs)

    return _invoke
