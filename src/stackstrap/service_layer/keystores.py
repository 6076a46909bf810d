"""JKS keystore/truststore packaging via ``keytool``.

JKS is derived from the PKCS#12 archive written by
`stackstrap.service_layer.certificates`. When ``keytool`` is not installed
the step is skipped with a warning; a keytool failure is a tool error.
"""

from __future__ import annotations

import logging
from pathlib import Path

from stackstrap.domain.certificates import ServiceProfile
from stackstrap.interfaces.command_runner import CommandRunner
from stackstrap.service_layer.certificates import CaPaths, ServicePaths

logger = logging.getLogger(__name__)

KEYTOOL = "keytool"
CA_ALIAS = "ca"


def keystore_command(
    profile: ServiceProfile, paths: ServicePaths, password: str
) -> list[str]:
    return [
        KEYTOOL,
        "-importkeystore",
        "-srckeystore",
        str(paths.pkcs12),
        "-srcstoretype",
        "PKCS12",
        "-destkeystore",
        str(paths.keystore),
        "-deststoretype",
        "JKS",
        "-srcstorepass",
        password,
        "-deststorepass",
        password,
        "-srcalias",
        profile.name,
        "-destalias",
        profile.name,
        "-noprompt",
    ]


def truststore_command(paths: ServicePaths, ca_paths: CaPaths, password: str) -> list[str]:
    return [
        KEYTOOL,
        "-import",
        "-trustcacerts",
        "-alias",
        CA_ALIAS,
        "-file",
        str(ca_paths.cert),
        "-keystore",
        str(paths.truststore),
        "-storepass",
        password,
        "-noprompt",
    ]


class JksPackager:  # pylint: disable=too-few-public-methods
    """Callable hook for `generate_all` that writes JKS stores with keytool."""

    def __init__(self, runner: CommandRunner, password: str) -> None:
        self._runner = runner
        self._password = password

    def __call__(
        self, profile: ServiceProfile, paths: ServicePaths, ca_paths: CaPaths
    ) -> list[Path] | None:
        if self._runner.which(KEYTOOL) is None:
            logger.warning(
                "keytool not found in PATH; skipping JKS generation for %s. "
                "Install a Java JDK to generate JKS keystores.",
                profile.name,
            )
            return None

        # keytool refuses to overwrite an existing alias
        for stale in (paths.keystore, paths.truststore):
            stale.unlink(missing_ok=True)

        logger.info("Generating %s JKS keystore", profile.name)
        self._runner.check(keystore_command(profile, paths, self._password))
        logger.info("Generating %s JKS truststore", profile.name)
        self._runner.check(truststore_command(paths, ca_paths, self._password))
        return [paths.keystore, paths.truststore]
