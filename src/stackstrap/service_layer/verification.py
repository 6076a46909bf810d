"""Chain verification of issued service certificates against the CA."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from cryptography import x509
from cryptography.exceptions import InvalidSignature

from stackstrap.domain.errors import CertificateError, ChainVerificationError
from stackstrap.service_layer.certificates import CaPaths, ServicePaths

logger = logging.getLogger(__name__)


def verify_chain(service: str, leaf: x509.Certificate, ca_cert: x509.Certificate) -> None:
    """Check that `leaf` was issued and signed by `ca_cert`.

    Raises:
        ChainVerificationError: On issuer mismatch or a bad signature.
    """
    if leaf.issuer != ca_cert.subject:
        raise ChainVerificationError(
            service,
            f"issuer {leaf.issuer.rfc4514_string()!r} != CA subject "
            f"{ca_cert.subject.rfc4514_string()!r}",
        )
    try:
        leaf.verify_directly_issued_by(ca_cert)
    except (ValueError, TypeError, InvalidSignature) as e:
        raise ChainVerificationError(service, str(e) or type(e).__name__) from e


@dataclass(frozen=True)
class VerifiedCertificate:
    service: str
    path: Path
    subject: str
    not_after: str


def verify_certs_dir(
    certs_dir: Path, services: Iterable[str]
) -> list[VerifiedCertificate]:
    """Verify each service certificate found under `certs_dir`.

    Services without a certificate on disk are skipped with a warning.

    Raises:
        CertificateError: If the CA certificate is missing.
        ChainVerificationError: On the first certificate that does not verify.
    """
    ca_paths = CaPaths.under(certs_dir)
    if not ca_paths.cert.is_file():
        raise CertificateError(f"CA certificate not found at {ca_paths.cert}.")
    ca_cert = x509.load_pem_x509_certificate(ca_paths.cert.read_bytes())

    verified: list[VerifiedCertificate] = []
    for service in services:
        paths = ServicePaths.under(certs_dir, service)
        if not paths.cert.is_file():
            logger.warning("No certificate for %s at %s", service, paths.cert)
            continue
        leaf = x509.load_pem_x509_certificate(paths.cert.read_bytes())
        verify_chain(service, leaf, ca_cert)
        logger.info("%s certificate verifies against the CA", service)
        verified.append(
            VerifiedCertificate(
                service=service,
                path=paths.cert,
                subject=leaf.subject.rfc4514_string(),
                not_after=leaf.not_valid_after_utc.date().isoformat(),
            )
        )
    return verified
