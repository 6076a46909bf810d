"""Certificate authority generation and per-service leaf issuance.

The chain is: CA key + self-signed CA certificate, then for each service a
key, a CSR bound to ``CN=<service>`` with SANs, a CA-signed certificate and
(optionally) a password-protected PKCS#12 bundle holding the leaf, its key
and the CA chain.

Any failure aborts the chain; there is no partial-success handling.
"""

from __future__ import annotations

import datetime as dt
import logging
import os
import shutil
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from ipaddress import ip_address
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from stackstrap.config import CertificateSettings
from stackstrap.domain.certificates import (
    DEFAULT_SERVICES,
    DistinguishedName,
    ServiceProfile,
    build_subject_alt_names,
    parse_alt_names,
)
from stackstrap.domain.errors import CertificateError

logger = logging.getLogger(__name__)

PUBLIC_EXPONENT = 65537
BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

Clock = Callable[[], dt.datetime]


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


# ============================================================================
#                           Layout
# ============================================================================


@dataclass(frozen=True)
class CaPaths:
    directory: Path
    key: Path
    cert: Path

    @classmethod
    def under(cls, certs_dir: Path) -> CaPaths:
        directory = certs_dir / "ca"
        return cls(directory, directory / "ca.key", directory / "ca.crt")


@dataclass(frozen=True)
class ServicePaths:  # pylint: disable=too-many-instance-attributes
    directory: Path
    key: Path
    csr: Path
    cert: Path
    pkcs12: Path
    keystore: Path
    truststore: Path

    @classmethod
    def under(cls, certs_dir: Path, service: str) -> ServicePaths:
        directory = certs_dir / service.lower()
        return cls(
            directory=directory,
            key=directory / f"{service}.key",
            csr=directory / f"{service}.csr",
            cert=directory / f"{service}.crt",
            pkcs12=directory / f"{service}.p12",
            keystore=directory / f"{service}.keystore.jks",
            truststore=directory / f"{service}.truststore.jks",
        )


def _write(path: Path, data: bytes, mode: int = 0o644) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    os.chmod(path, mode)


def backup_directory(
    directory: Path, certs_dir: Path, now: dt.datetime
) -> Path | None:
    """Copy `directory` into ``<certs_dir>/backup_<timestamp>/<name>``.

    Returns:
        The backup path, or None when there was nothing to back up.
    """
    if not directory.is_dir() or not any(directory.iterdir()):
        return None
    target = (
        certs_dir / f"backup_{now.strftime(BACKUP_TIMESTAMP_FORMAT)}" / directory.name
    )
    shutil.copytree(directory, target, dirs_exist_ok=True)
    logger.info("Backed up %s to %s", directory, target)
    return target


# ============================================================================
#                           Certificate authority
# ============================================================================


@dataclass(frozen=True)
class CertificateAuthority:
    key: rsa.RSAPrivateKey
    cert: x509.Certificate

    @property
    def subject(self) -> x509.Name:
        return self.cert.subject


def _name(dn: DistinguishedName) -> x509.Name:
    return x509.Name(
        [
            x509.NameAttribute(NameOID.COUNTRY_NAME, dn.country),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, dn.organization),
            x509.NameAttribute(NameOID.ORGANIZATIONAL_UNIT_NAME, dn.organizational_unit),
            x509.NameAttribute(NameOID.COMMON_NAME, dn.common_name),
        ]
    )


def _dn(settings: CertificateSettings, common_name: str) -> DistinguishedName:
    return DistinguishedName(
        common_name=common_name,
        organization=settings.organization,
        organizational_unit=settings.organizational_unit,
        country=settings.country,
    )


def generate_ca(
    settings: CertificateSettings, clock: Clock = utcnow
) -> CertificateAuthority:
    """Generate a CA key and self-signed certificate from `settings`."""
    logger.info("Generating CA private key (%s bits)", settings.key_size)
    key = rsa.generate_private_key(
        public_exponent=PUBLIC_EXPONENT, key_size=settings.key_size
    )
    subject = _name(_dn(settings, settings.ca_name))
    now = clock()
    cert = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + dt.timedelta(days=settings.ca_validity_days))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=False,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=True,
                crl_sign=True,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(
            x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False
        )
        .sign(private_key=key, algorithm=hashes.SHA256())
    )
    logger.info("Generated CA certificate for %s", settings.ca_name)
    return CertificateAuthority(key=key, cert=cert)


def write_ca(ca: CertificateAuthority, paths: CaPaths, passphrase: str) -> None:
    """Write the CA key (encrypted with `passphrase`) and certificate as PEM."""
    _write(
        paths.key,
        ca.key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.BestAvailableEncryption(
                passphrase.encode()
            ),
        ),
        mode=0o600,
    )
    _write(paths.cert, ca.cert.public_bytes(serialization.Encoding.PEM))


def load_ca(paths: CaPaths, passphrase: str) -> CertificateAuthority:
    """Load an existing CA from disk.

    Raises:
        CertificateError: If files are missing, or the passphrase is wrong.
    """
    if not paths.key.is_file() or not paths.cert.is_file():
        raise CertificateError(
            f"CA material not found in {paths.directory}; run 'stackstrap certs generate'."
        )
    try:
        key = serialization.load_pem_private_key(
            paths.key.read_bytes(), password=passphrase.encode()
        )
    except (ValueError, TypeError) as e:
        raise CertificateError(f"Cannot decrypt CA key {paths.key}: {e}") from e
    if not isinstance(key, rsa.RSAPrivateKey):
        raise CertificateError(f"CA key {paths.key} is not an RSA key.")
    cert = x509.load_pem_x509_certificate(paths.cert.read_bytes())
    return CertificateAuthority(key=key, cert=cert)


# ============================================================================
#                           Leaf certificates
# ============================================================================


@dataclass(frozen=True)
class IssuedCertificate:
    service: str
    key: rsa.RSAPrivateKey
    csr: x509.CertificateSigningRequest
    cert: x509.Certificate


def build_csr(
    key: rsa.RSAPrivateKey, dn: DistinguishedName, alt_names: Iterable[str] = ()
) -> x509.CertificateSigningRequest:
    """Build a CSR for `dn` carrying the SAN and usage extensions."""
    sans = build_subject_alt_names(dn.common_name, tuple(alt_names))
    general_names: list[x509.GeneralName] = [x509.DNSName(d) for d in sans.dns]
    general_names += [x509.IPAddress(ip_address(ip)) for ip in sans.ips]
    return (
        x509.CertificateSigningRequestBuilder()
        .subject_name(_name(dn))
        .add_extension(x509.SubjectAlternativeName(general_names), critical=False)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=True,
                data_encipherment=True,
                key_agreement=False,
                key_cert_sign=False,
                crl_sign=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(
            x509.ExtendedKeyUsage(
                [ExtendedKeyUsageOID.SERVER_AUTH, ExtendedKeyUsageOID.CLIENT_AUTH]
            ),
            critical=False,
        )
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )


def sign_csr(
    csr: x509.CertificateSigningRequest,
    ca: CertificateAuthority,
    validity_days: int,
    clock: Clock = utcnow,
) -> x509.Certificate:
    """Sign `csr` with the CA key, copying the CSR's requested extensions."""
    if not csr.is_signature_valid:
        raise CertificateError("CSR signature is invalid.")
    now = clock()
    builder = (
        x509.CertificateBuilder()
        .subject_name(csr.subject)
        .issuer_name(ca.cert.subject)
        .public_key(csr.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + dt.timedelta(days=validity_days))
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(ca.key.public_key()),
            critical=False,
        )
    )
    for extension in csr.extensions:
        builder = builder.add_extension(extension.value, critical=extension.critical)
    return builder.sign(private_key=ca.key, algorithm=hashes.SHA256())


def issue_service_certificate(
    ca: CertificateAuthority,
    profile: ServiceProfile,
    settings: CertificateSettings,
    clock: Clock = utcnow,
) -> IssuedCertificate:
    """Generate key + CSR for `profile` and sign it with `ca`."""
    logger.info("Generating %s private key", profile.name)
    key = rsa.generate_private_key(
        public_exponent=PUBLIC_EXPONENT, key_size=settings.key_size
    )
    csr = build_csr(key, _dn(settings, profile.name), profile.alt_names)
    cert = sign_csr(csr, ca, settings.cert_validity_days, clock=clock)
    logger.info("Signed %s certificate", profile.name)
    return IssuedCertificate(service=profile.name, key=key, csr=csr, cert=cert)


def pkcs12_bundle(
    issued: IssuedCertificate, ca_cert: x509.Certificate, password: str
) -> bytes:
    """Serialize leaf cert, key and CA chain as a password-protected PKCS#12."""
    return pkcs12.serialize_key_and_certificates(
        name=issued.service.encode(),
        key=issued.key,
        cert=issued.cert,
        cas=[ca_cert],
        encryption_algorithm=serialization.BestAvailableEncryption(password.encode()),
    )


def write_service_material(
    issued: IssuedCertificate,
    paths: ServicePaths,
    ca_cert: x509.Certificate,
    password: str,
    with_pkcs12: bool,
) -> list[Path]:
    """Write key, CSR, certificate and (optionally) PKCS#12 for one service."""
    _write(
        paths.key,
        issued.key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        ),
        mode=0o600,
    )
    _write(paths.csr, issued.csr.public_bytes(serialization.Encoding.PEM))
    _write(paths.cert, issued.cert.public_bytes(serialization.Encoding.PEM))
    written = [paths.key, paths.csr, paths.cert]
    if with_pkcs12:
        _write(paths.pkcs12, pkcs12_bundle(issued, ca_cert, password), mode=0o600)
        written.append(paths.pkcs12)
    return written


# ============================================================================
#                           Whole chain
# ============================================================================


@dataclass
class GenerationReport:
    """What `generate_all` created or skipped."""

    ca_generated: bool = False
    issued: dict[str, list[Path]] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)
    backups: list[Path] = field(default_factory=list)
    jks_skipped: list[str] = field(default_factory=list)


KeystoreHook = Callable[[ServiceProfile, ServicePaths, CaPaths], list[Path] | None]


def resolve_profile(spec: str) -> ServiceProfile:
    """Map ``name`` or ``name:alt1,alt2`` to a profile.

    Known services keep their built-in alt names and gain the extra ones;
    unknown names get a PKCS#12-only profile.
    """
    name, _, extra = spec.partition(":")
    name = name.strip().lower()
    profile = DEFAULT_SERVICES.get(name, ServiceProfile(name))
    if extra_names := parse_alt_names(extra):
        profile = replace(profile, alt_names=(*profile.alt_names, *extra_names))
    return profile


def resolve_profiles(specs: Iterable[str] | None) -> list[ServiceProfile]:
    """Resolve every `specs` entry, or all default services when empty."""
    if not specs:
        return list(DEFAULT_SERVICES.values())
    return [resolve_profile(spec) for spec in specs]


def generate_all(
    settings: CertificateSettings,
    profiles: Iterable[ServiceProfile],
    keystores: KeystoreHook | None = None,
    clock: Clock = utcnow,
) -> GenerationReport:
    """Run CA generation then leaf issuance for every profile.

    With `settings.skip_if_exists`, an existing CA certificate is loaded and
    reused, and services whose ``.crt`` exists are left untouched. With
    `settings.backup_existing`, directories about to be rewritten are copied
    to a timestamped backup first.

    Args:
        settings: Certificate inputs.
        profiles: Services to issue for.
        keystores: Optional JKS packaging step, called after the PKCS#12 is
            written. Returns the paths it wrote, or None if it was skipped.
        clock: Time source for validity windows and backup names.

    Returns:
        GenerationReport: Summary of the run.
    """
    report = GenerationReport()
    certs_dir = settings.certs_dir
    now = clock()
    ca_paths = CaPaths.under(certs_dir)

    if settings.skip_if_exists and ca_paths.cert.is_file():
        logger.info("CA certificate exists at %s, reusing it", ca_paths.cert)
        ca = load_ca(ca_paths, settings.ca_key_password)
    else:
        if settings.backup_existing and (
            backup := backup_directory(ca_paths.directory, certs_dir, now)
        ):
            report.backups.append(backup)
        ca = generate_ca(settings, clock=clock)
        write_ca(ca, ca_paths, settings.ca_key_password)
        report.ca_generated = True

    for profile in profiles:
        paths = ServicePaths.under(certs_dir, profile.name)
        if settings.skip_if_exists and paths.cert.is_file():
            logger.info("%s certificate exists, skipping", profile.name)
            report.skipped.append(profile.name)
            continue
        if settings.backup_existing and (
            backup := backup_directory(paths.directory, certs_dir, now)
        ):
            report.backups.append(backup)

        issued = issue_service_certificate(ca, profile, settings, clock=clock)
        written = write_service_material(
            issued,
            paths,
            ca.cert,
            settings.cert_password,
            with_pkcs12=profile.wants_pkcs12,
        )
        if profile.jks and keystores is not None:
            if (jks_paths := keystores(profile, paths, ca_paths)) is None:
                report.jks_skipped.append(profile.name)
            else:
                written.extend(jks_paths)
        report.issued[profile.name] = written

    return report
