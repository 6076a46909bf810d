"""STACKSTRAP certificate CLI.

Commands
- `generate`   : Create the local CA, then a key, CSR, certificate and
                 PKCS#12 bundle per service (plus JKS stores where the
                 service needs them and keytool is available).
- `install-ca` : Import the CA into the OS trusted root store, or print the
                 manual steps when not running elevated.
- `verify`     : Check every service certificate chains to the CA.

Inputs default to the certificate environment variables (``CA_NAME``,
``CERT_PASSWORD``, ``STACKSTRAP_CERTS_DIR``...); options override them.

Examples
    $ stackstrap certs generate
    $ stackstrap certs generate --service kafka --overwrite --no-backup
    $ sudo stackstrap certs install-ca
"""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import TYPE_CHECKING

import click
import click_extra as clickx
from rich.console import Console
from rich.table import Table

from stackstrap.config import CertificateSettings
from stackstrap.domain.certificates import DEFAULT_SERVICES
from stackstrap.domain.results import Installed
from stackstrap.service_layer.certificates import (
    CaPaths,
    generate_all,
    resolve_profiles,
)
from stackstrap.service_layer.keystores import JksPackager
from stackstrap.service_layer.trust import install_ca as install_ca_service
from stackstrap.service_layer.verification import verify_certs_dir

from .helpers import handles_errors, note, success, warn

if TYPE_CHECKING:
    from stackstrap.bootstrap import AppContainer

CERTS_DIR_OPTION = click.option(
    "--certs-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output directory for certificates (default: STACKSTRAP_CERTS_DIR or ./certs).",
)


def _settings(**overrides: object) -> CertificateSettings:
    """Certificate settings from the environment, with non-None CLI overrides."""
    settings = CertificateSettings.from_env()
    changes = {key: value for key, value in overrides.items() if value is not None}
    return dataclasses.replace(settings, **changes) if changes else settings


@click.group(cls=clickx.ExtraGroup)
def certs() -> None:
    """Local CA and per-service TLS material."""


@certs.command()
@CERTS_DIR_OPTION
@click.option("--ca-name", default=None, help="CA common name (default: CA_NAME).")
@click.option(
    "--service",
    "services",
    multiple=True,
    help=(
        "Issue a certificate for this service only. Repeatable. Append extra "
        "SANs as NAME:ALT1,ALT2 (e.g. kibana:kibana.local,10.0.0.5). "
        f"Defaults to: {', '.join(DEFAULT_SERVICES)}."
    ),
)
@click.option(
    "--skip-if-exists/--overwrite",
    default=None,
    help="Reuse an existing CA and skip services that already have a certificate.",
)
@click.option(
    "--backup/--no-backup",
    default=None,
    help="Copy directories about to be rewritten into certs/backup_<timestamp>/.",
)
@click.pass_obj
@handles_errors
def generate(  # pylint: disable=too-many-arguments, too-many-positional-arguments
    app: AppContainer,
    certs_dir: Path | None,
    ca_name: str | None,
    services: tuple[str, ...],
    skip_if_exists: bool | None,
    backup: bool | None,
) -> None:
    """Generate the CA and service certificates."""
    settings = _settings(
        certs_dir=certs_dir,
        ca_name=ca_name,
        skip_if_exists=skip_if_exists,
        backup_existing=backup,
    )
    report = generate_all(
        settings,
        resolve_profiles(services),
        keystores=JksPackager(app.runner, settings.cert_password),
    )

    for path in report.backups:
        note(f"Backed up to {path}")
    if report.ca_generated:
        success(f"CA '{settings.ca_name}' written to {CaPaths.under(settings.certs_dir).directory}")
    for name in report.skipped:
        note(f"{name}: certificate exists, skipped")
    for name, paths in report.issued.items():
        success(f"{name}: {', '.join(p.name for p in paths)}")
    if report.jks_skipped:
        warn(
            "keytool not found; JKS stores were not created for "
            f"{', '.join(report.jks_skipped)}. Install a Java JDK and re-run."
        )


@certs.command("install-ca")
@click.argument(
    "cert_path",
    required=False,
    type=click.Path(dir_okay=False, path_type=Path),
)
@CERTS_DIR_OPTION
@click.option(
    "--common-name",
    default=None,
    help="Name used for the trust-store entry (default: CA_NAME).",
)
@click.pass_obj
@handles_errors
def install_ca(
    app: AppContainer,
    cert_path: Path | None,
    certs_dir: Path | None,
    common_name: str | None,
) -> None:
    """Trust the local CA system-wide (needs root/administrator)."""
    settings = _settings(certs_dir=certs_dir, ca_name=common_name)
    cert_path = cert_path or CaPaths.under(settings.certs_dir).cert

    outcome = install_ca_service(
        cert_path,
        settings.ca_name,
        app.trust_store,
        app.runner,
        app.is_privileged,
    )
    if isinstance(outcome, Installed):
        success(f"Installed {outcome.certificate} into the {outcome.store} trust store")
        return

    warn(outcome.reason)
    for number, step in enumerate(outcome.steps, start=1):
        click.echo(f"  {number}. {step}", err=True)
    if outcome.commands:
        note("Commands:")
        for command in outcome.commands:
            click.echo(f"    {command}")


@certs.command()
@CERTS_DIR_OPTION
@click.option(
    "--service",
    "services",
    multiple=True,
    help="Verify only this service. Repeatable.",
)
@handles_errors
def verify(certs_dir: Path | None, services: tuple[str, ...]) -> None:
    """Check that service certificates chain to the CA."""
    settings = _settings(certs_dir=certs_dir)
    names = [s.lower() for s in services] or list(DEFAULT_SERVICES)
    verified = verify_certs_dir(settings.certs_dir, names)
    if not verified:
        warn(f"No service certificates found under {settings.certs_dir}")
        return

    table = Table(title="Certificates")
    table.add_column("Service")
    table.add_column("Subject")
    table.add_column("Expires")
    for cert in verified:
        table.add_row(cert.service, cert.subject, cert.not_after)
    Console().print(table)
    success(f"{len(verified)} certificate(s) verify against the CA")
