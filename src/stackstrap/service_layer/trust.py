"""CA trust installation with an explicit privileged/unprivileged branch."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from stackstrap.domain.errors import CertificateError
from stackstrap.domain.results import Installed, ManualStepsRequired, TrustOutcome
from stackstrap.interfaces.command_runner import CommandRunner
from stackstrap.interfaces.trust_store import TrustStore

logger = logging.getLogger(__name__)


def install_ca(
    cert_path: Path,
    common_name: str,
    store: TrustStore | None,
    runner: CommandRunner,
    is_privileged: Callable[[], bool],
) -> TrustOutcome:
    """Import `cert_path` into the OS trusted root store.

    Without elevated privileges nothing is attempted; the returned
    `ManualStepsRequired` carries the guidance and the exact commands.

    Raises:
        CertificateError: If `cert_path` does not exist.
        ToolError: If the privileged import command fails.
    """
    if not cert_path.is_file():
        raise CertificateError(f"CA certificate not found at {cert_path}.")

    if store is None:
        return ManualStepsRequired(
            reason="Unsupported platform for automatic trust installation.",
            steps=(f"Import {cert_path} as a trusted root CA in your OS/browser.",),
            commands=(),
        )

    if not is_privileged():
        logger.info("Not running with elevated privileges; returning manual steps")
        return ManualStepsRequired(
            reason="Administrator/root privileges are required to modify the "
            "trusted root store.",
            steps=tuple(store.manual_steps(cert_path, common_name)),
            commands=tuple(store.manual_commands(cert_path, common_name)),
        )

    logger.info("Importing %s into the %s trust store", cert_path, store.name)
    store.prepare(cert_path, common_name)
    for command in store.import_commands(cert_path, common_name):
        runner.check(command)
    return Installed(store=store.name, certificate=cert_path)
