"""Wire concrete adapters into an application container."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from stackstrap.adapters import redactor as regex_redactor
from stackstrap.adapters.command_runner import SubprocessCommandRunner
from stackstrap.adapters.trust_store import detect_trust_store, is_privileged
from stackstrap.interfaces.command_runner import CommandRunner
from stackstrap.interfaces.redactor import Redactor, RedactorMode
from stackstrap.interfaces.trust_store import TrustStore


@dataclass(frozen=True)
class AppContainer:
    """A class to hold application wiring."""

    runner: CommandRunner
    redactor: Redactor
    trust_store: TrustStore | None
    is_privileged: Callable[[], bool]


def build_runner(redactor: Redactor) -> CommandRunner:
    """Build the command runner used for every external tool."""
    return SubprocessCommandRunner(redactor)


def bootstrap(redactor_mode: RedactorMode | str = RedactorMode.LENIENT) -> AppContainer:
    """Bootstrap the adapters for the running platform."""
    redactor = regex_redactor.Redactor(RedactorMode(redactor_mode))
    return AppContainer(
        runner=build_runner(redactor),
        redactor=redactor,
        trust_store=detect_trust_store(),
        is_privileged=is_privileged,
    )
