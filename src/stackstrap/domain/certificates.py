"""Certificate request values and subject alternative name rules."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field

DEFAULT_SAN_ENTRIES = ("localhost", "127.0.0.1")


@dataclass(frozen=True)
class DistinguishedName:
    """Subject fields shared by the CA and the leaf certificates."""

    common_name: str
    organization: str = "Artemis"
    organizational_unit: str = "Development"
    country: str = "US"


@dataclass(frozen=True)
class ServiceProfile:
    """What to issue for one service.

    Attributes:
        name: Service name; becomes the CN and the directory/file stem.
        alt_names: Extra SAN entries (hostnames or IP literals).
        pkcs12: Export a password-protected PKCS#12 archive.
        jks: Derive JKS keystore/truststore from the PKCS#12 (needs keytool).
    """

    name: str
    alt_names: tuple[str, ...] = ()
    pkcs12: bool = True
    jks: bool = False

    @property
    def wants_pkcs12(self) -> bool:
        # JKS is converted from the PKCS#12 archive
        return self.pkcs12 or self.jks


DEFAULT_SERVICES: dict[str, ServiceProfile] = {
    "elasticsearch": ServiceProfile(
        "elasticsearch",
        alt_names=("artemis-elasticsearch", "es", "elastic"),
        pkcs12=True,
        jks=True,
    ),
    "kibana": ServiceProfile(
        "kibana", alt_names=("artemis-kibana", "ki"), pkcs12=True, jks=False
    ),
    "kafka": ServiceProfile(
        "kafka", alt_names=("artemis-kafka", "broker"), pkcs12=False, jks=True
    ),
}


@dataclass(frozen=True)
class SubjectAltNames:
    """Split SAN entries, in first-seen order."""

    dns: tuple[str, ...] = field(default_factory=tuple)
    ips: tuple[str, ...] = field(default_factory=tuple)


def _is_ip(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def build_subject_alt_names(
    service_name: str, alt_names: tuple[str, ...] | list[str] = ()
) -> SubjectAltNames:
    """Build the SAN set for a service certificate.

    The service name, ``localhost`` and ``127.0.0.1`` always come first,
    followed by `alt_names`. Entries are trimmed, blanks dropped, duplicates
    removed (case-insensitively for hostnames) and IP literals separated
    from DNS names.

    Args:
        service_name: The service the certificate is issued for.
        alt_names: Additional hostnames or IP addresses.

    Returns:
        SubjectAltNames: DNS and IP entries.
    """
    dns: list[str] = []
    ips: list[str] = []
    seen: set[str] = set()
    for raw in (service_name, *DEFAULT_SAN_ENTRIES, *alt_names):
        entry = raw.strip()
        if not entry or entry.lower() in seen:
            continue
        seen.add(entry.lower())
        if _is_ip(entry):
            ips.append(entry)
        else:
            dns.append(entry)
    return SubjectAltNames(dns=tuple(dns), ips=tuple(ips))


def parse_alt_names(value: str) -> tuple[str, ...]:
    """Split a comma-separated alt-name list, dropping blanks."""
    return tuple(part.strip() for part in value.split(",") if part.strip())
