"""Configuration utilities for STACKSTRAP.

This module centralizes environment lookups. Every command reads the
environment once into a frozen settings object; nothing else in the package
calls `os.environ` directly.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from stackstrap.domain.broker import TUNING_PROFILES
from stackstrap.domain.errors import InvalidSettingError, MissingSettingError

Environ = Mapping[str, str]

TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
FALSE_VALUES = frozenset({"0", "false", "no", "off"})

DEFAULT_TOKEN_FILE = "/shared/kibana_service_token.txt"


# ============================================================================
#                           Lookup helpers
# ============================================================================


def _get(environ: Environ, name: str, default: str) -> str:
    if not (value := environ.get(name, "").strip()):
        return default
    return value


def _require(environ: Environ, name: str) -> str:
    if not (value := environ.get(name, "").strip()):
        raise MissingSettingError(name)
    return value


def _get_optional(environ: Environ, name: str) -> str | None:
    return environ.get(name, "").strip() or None


def _get_bool(environ: Environ, name: str, default: bool) -> bool:
    if not (raw := environ.get(name, "").strip()):
        return default
    if raw.lower() in TRUE_VALUES:
        return True
    if raw.lower() in FALSE_VALUES:
        return False
    raise InvalidSettingError(name, raw, "expected true/false")


def _get_int(environ: Environ, name: str, default: int, minimum: int = 1) -> int:
    if not (raw := environ.get(name, "").strip()):
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise InvalidSettingError(name, raw, "expected an integer") from e
    if value < minimum:
        raise InvalidSettingError(name, raw, f"must be >= {minimum}")
    return value


def _get_float(environ: Environ, name: str, default: float) -> float:
    if not (raw := environ.get(name, "").strip()):
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise InvalidSettingError(name, raw, "expected a number") from e
    if value < 0:
        raise InvalidSettingError(name, raw, "must not be negative")
    return value


# ============================================================================
#                           Settings
# ============================================================================


@dataclass(frozen=True)
class WaitPolicy:
    """Bounded polling: `attempts` checks, `interval` seconds apart."""

    attempts: int
    interval: float

    @classmethod
    def from_env(
        cls, environ: Environ, prefix: str, default: WaitPolicy
    ) -> WaitPolicy:
        return cls(
            attempts=_get_int(environ, f"{prefix}_ATTEMPTS", default.attempts),
            interval=_get_float(environ, f"{prefix}_INTERVAL", default.interval),
        )


TOKEN_WAIT = WaitPolicy(attempts=60, interval=5.0)
PORT_WAIT = WaitPolicy(attempts=150, interval=2.0)


@dataclass(frozen=True)
class CertificateSettings:  # pylint: disable=too-many-instance-attributes
    """Inputs of the CA + leaf certificate generation chain."""

    certs_dir: Path = Path("certs")
    ca_name: str = "ArtemisLocalCA"
    ca_key_password: str = "changeme"
    cert_password: str = "changeme"
    ca_validity_days: int = 3650
    cert_validity_days: int = 365
    key_size: int = 2048
    organization: str = "Artemis"
    organizational_unit: str = "Development"
    country: str = "US"
    backup_existing: bool = True
    skip_if_exists: bool = False

    @classmethod
    def from_env(cls, environ: Environ = os.environ) -> CertificateSettings:
        country = _get(environ, "COUNTRY", cls.country)
        if len(country) != 2:
            raise InvalidSettingError("COUNTRY", country, "expected a 2-letter code")
        return cls(
            certs_dir=Path(_get(environ, "STACKSTRAP_CERTS_DIR", "certs")),
            ca_name=_get(environ, "CA_NAME", cls.ca_name),
            ca_key_password=_get(environ, "CA_KEY_PASSWORD", cls.ca_key_password),
            cert_password=_get(environ, "CERT_PASSWORD", cls.cert_password),
            ca_validity_days=_get_int(
                environ, "CA_VALIDITY_DAYS", cls.ca_validity_days
            ),
            cert_validity_days=_get_int(
                environ, "CERT_VALIDITY_DAYS", cls.cert_validity_days
            ),
            key_size=_get_int(environ, "CA_KEY_SIZE", cls.key_size, minimum=1024),
            organization=_get(environ, "ORGANIZATION", cls.organization),
            organizational_unit=_get(
                environ, "ORGANIZATIONAL_UNIT", cls.organizational_unit
            ),
            country=country,
            backup_existing=_get_bool(environ, "BACKUP_EXISTING", cls.backup_existing),
            skip_if_exists=_get_bool(environ, "SKIP_IF_EXISTS", cls.skip_if_exists),
        )


@dataclass(frozen=True)
class KafkaTlsSettings:
    keystore_location: str
    keystore_password: str
    truststore_location: str
    truststore_password: str


@dataclass(frozen=True)
class KafkaSettings:  # pylint: disable=too-many-instance-attributes
    """Inputs of the Kafka broker entrypoint."""

    zookeeper_connect: str
    listeners: str
    advertised_listeners: str
    listener_security_protocol_map: str
    inter_broker_listener_name: str
    broker_id: int = 1
    log_dirs: str = "/var/lib/kafka/data"
    logs_dir: str = "/opt/kafka/logs"
    config_path: Path = Path("/opt/kafka/config/server.properties")
    kafka_home: Path = Path("/opt/kafka")
    tuning_profile: str = "default"
    tls: KafkaTlsSettings | None = None
    extra_properties_file: Path | None = None
    zookeeper_wait: WaitPolicy = PORT_WAIT
    run_as: str | None = "kafka"

    @classmethod
    def from_env(cls, environ: Environ = os.environ) -> KafkaSettings:
        profile = _get(environ, "KAFKA_TUNING_PROFILE", "default").lower()
        if profile not in TUNING_PROFILES:
            raise InvalidSettingError(
                "KAFKA_TUNING_PROFILE",
                profile,
                f"expected one of {', '.join(sorted(TUNING_PROFILES))}",
            )

        tls = None
        if keystore := _get_optional(environ, "KAFKA_SSL_KEYSTORE_LOCATION"):
            tls = KafkaTlsSettings(
                keystore_location=keystore,
                keystore_password=_get(environ, "KAFKA_SSL_KEYSTORE_PASSWORD", ""),
                truststore_location=_get(environ, "KAFKA_SSL_TRUSTSTORE_LOCATION", ""),
                truststore_password=_get(environ, "KAFKA_SSL_TRUSTSTORE_PASSWORD", ""),
            )

        extra = _get_optional(environ, "KAFKA_EXTRA_PROPERTIES_FILE")
        kafka_home = Path(_get(environ, "KAFKA_HOME", "/opt/kafka"))
        return cls(
            zookeeper_connect=_require(environ, "KAFKA_ZOOKEEPER_CONNECT"),
            listeners=_require(environ, "KAFKA_LISTENERS"),
            advertised_listeners=_require(environ, "KAFKA_ADVERTISED_LISTENERS"),
            listener_security_protocol_map=_require(
                environ, "KAFKA_LISTENER_SECURITY_PROTOCOL_MAP"
            ),
            inter_broker_listener_name=_require(
                environ, "KAFKA_INTER_BROKER_LISTENER_NAME"
            ),
            broker_id=_get_int(environ, "KAFKA_BROKER_ID", 1, minimum=0),
            log_dirs=_get(environ, "KAFKA_LOG_DIRS", cls.log_dirs),
            logs_dir=str(kafka_home / "logs"),
            config_path=Path(
                _get(
                    environ,
                    "KAFKA_CONFIG_PATH",
                    str(kafka_home / "config" / "server.properties"),
                )
            ),
            kafka_home=kafka_home,
            tuning_profile=profile,
            tls=tls,
            extra_properties_file=Path(extra) if extra else None,
            zookeeper_wait=WaitPolicy.from_env(
                environ, "KAFKA_ZOOKEEPER_WAIT", PORT_WAIT
            ),
            run_as=_get_optional(environ, "KAFKA_RUN_AS") or "kafka",
        )

    def zookeeper_address(self) -> tuple[str, int]:
        """Return (host, port) of the first ZooKeeper in the connect string.

        ``zk1:2181,zk2:2181/kafka`` -> ``("zk1", 2181)``.
        """
        first = self.zookeeper_connect.split(",")[0].split("/")[0].strip()
        host, sep, port = first.rpartition(":")
        if not sep or not host:
            raise InvalidSettingError(
                "KAFKA_ZOOKEEPER_CONNECT", self.zookeeper_connect, "expected host:port"
            )
        try:
            return host, int(port)
        except ValueError as e:
            raise InvalidSettingError(
                "KAFKA_ZOOKEEPER_CONNECT", self.zookeeper_connect, "invalid port"
            ) from e


@dataclass(frozen=True)
class KibanaSettings:
    """Inputs of the Kibana entrypoint."""

    token_file: Path = Path(DEFAULT_TOKEN_FILE)
    config_path: Path = Path("/etc/kibana/kibana.yml")
    kibana_bin: Path = Path("/usr/share/kibana/bin/kibana")
    data_dir: Path = Path("/usr/share/kibana/data")
    encryption_key: str | None = None
    token_wait: WaitPolicy = TOKEN_WAIT
    run_as: str | None = "kibana"

    @classmethod
    def from_env(cls, environ: Environ = os.environ) -> KibanaSettings:
        return cls(
            token_file=Path(_get(environ, "KIBANA_TOKEN_FILE", DEFAULT_TOKEN_FILE)),
            config_path=Path(_get(environ, "KIBANA_CONFIG_PATH", str(cls.config_path))),
            kibana_bin=Path(_get(environ, "KIBANA_BIN", str(cls.kibana_bin))),
            data_dir=Path(_get(environ, "KIBANA_DATA_DIR", str(cls.data_dir))),
            encryption_key=_get_optional(environ, "KIBANA_ENCRYPTION_KEY"),
            token_wait=WaitPolicy.from_env(environ, "KIBANA_TOKEN_WAIT", TOKEN_WAIT),
            run_as=_get_optional(environ, "KIBANA_RUN_AS") or "kibana",
        )


@dataclass(frozen=True)
class ElasticsearchSettings:  # pylint: disable=too-many-instance-attributes
    """Inputs of the Elasticsearch entrypoint and token provisioning."""

    es_home: Path = Path("/usr/share/elasticsearch")
    data_dir: Path = Path("/var/lib/elasticsearch")
    token_file: Path = Path(DEFAULT_TOKEN_FILE)
    service_account: str = "elastic/kibana"
    token_prefix: str = "kibana-token-"
    force_new_token: bool = True
    cleanup_old_tokens: bool = True
    max_token_age_days: int = 7
    run_as: str | None = "elasticsearch"

    @classmethod
    def from_env(cls, environ: Environ = os.environ) -> ElasticsearchSettings:
        return cls(
            es_home=Path(_get(environ, "ES_HOME", str(cls.es_home))),
            data_dir=Path(_get(environ, "ES_DATA_DIR", str(cls.data_dir))),
            token_file=Path(_get(environ, "KIBANA_TOKEN_FILE", DEFAULT_TOKEN_FILE)),
            force_new_token=_get_bool(environ, "FORCE_NEW_TOKEN", cls.force_new_token),
            cleanup_old_tokens=_get_bool(
                environ, "CLEANUP_OLD_TOKENS", cls.cleanup_old_tokens
            ),
            max_token_age_days=_get_int(
                environ, "MAX_TOKEN_AGE_DAYS", cls.max_token_age_days, minimum=0
            ),
            run_as=_get_optional(environ, "ES_RUN_AS") or "elasticsearch",
        )

    @property
    def service_tokens_bin(self) -> Path:
        return self.es_home / "bin" / "elasticsearch-service-tokens"

    @property
    def elasticsearch_bin(self) -> Path:
        return self.es_home / "bin" / "elasticsearch"


@dataclass(frozen=True)
class ZookeeperSettings:
    """Inputs of the ZooKeeper entrypoint."""

    kafka_home: Path = Path("/opt/kafka")
    config_path: Path = Path("/opt/kafka/config/zookeeper.properties")
    data_dirs: tuple[Path, ...] = field(
        default=(Path("/tmp/zookeeper/data"), Path("/tmp/zookeeper/logs"))
    )
    run_as: str | None = "kafka"

    @classmethod
    def from_env(cls, environ: Environ = os.environ) -> ZookeeperSettings:
        kafka_home = Path(_get(environ, "KAFKA_HOME", "/opt/kafka"))
        root = Path(_get(environ, "ZOOKEEPER_DIR", "/tmp/zookeeper"))
        return cls(
            kafka_home=kafka_home,
            config_path=Path(
                _get(
                    environ,
                    "ZOOKEEPER_CONFIG_PATH",
                    str(kafka_home / "config" / "zookeeper.properties"),
                )
            ),
            data_dirs=(root / "data", root / "logs"),
            run_as=_get_optional(environ, "ZOOKEEPER_RUN_AS") or "kafka",
        )


@dataclass(frozen=True)
class HealthCheckSettings:  # pylint: disable=too-many-instance-attributes
    """Container names and credentials used by `stackstrap check`."""

    kafka_container: str = "artemis-kafka"
    kafka_bin_dir: str = "/opt/kafka/bin"
    kafka_bootstrap_server: str = "localhost:9092"
    mongo_container: str = "artemis-mongodb"
    mongo_username: str | None = None
    mongo_password: str | None = None
    sql_container: str = "artemis-sqlserver"
    sqlcmd_path: str = "/opt/mssql-tools18/bin/sqlcmd"
    sql_password: str | None = None
    cleanup_attempts: int = 3
    cleanup_backoff: float = 3.0

    @classmethod
    def from_env(cls, environ: Environ = os.environ) -> HealthCheckSettings:
        return cls(
            kafka_container=_get(environ, "KAFKA_CONTAINER", cls.kafka_container),
            kafka_bin_dir=_get(environ, "KAFKA_BIN_DIR", cls.kafka_bin_dir),
            kafka_bootstrap_server=_get(
                environ, "KAFKA_BOOTSTRAP_SERVER", cls.kafka_bootstrap_server
            ),
            mongo_container=_get(environ, "MONGO_CONTAINER", cls.mongo_container),
            mongo_username=_get_optional(environ, "MONGO_INITDB_ROOT_USERNAME"),
            mongo_password=_get_optional(environ, "MONGO_INITDB_ROOT_PASSWORD"),
            sql_container=_get(environ, "MSSQL_CONTAINER", cls.sql_container),
            sqlcmd_path=_get(environ, "SQLCMD_PATH", cls.sqlcmd_path),
            sql_password=_get_optional(environ, "MSSQL_SA_PASSWORD"),
            cleanup_attempts=_get_int(
                environ, "CHECK_CLEANUP_ATTEMPTS", cls.cleanup_attempts
            ),
            cleanup_backoff=_get_float(
                environ, "CHECK_CLEANUP_BACKOFF", cls.cleanup_backoff
            ),
        )
