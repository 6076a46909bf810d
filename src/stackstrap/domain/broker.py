"""Typed Kafka broker configuration and its ``server.properties`` rendering.

The broker file is built from a `BrokerProperties` value and serialized in
one pass; nothing is patched in place. Keys are unique across the whole
document (a later section overrides an earlier one).
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

Section = tuple[str, dict[str, str]]

DEFAULT_PROFILE: tuple[Section, ...] = (
    (
        "Log settings",
        {
            "num.network.threads": "3",
            "num.io.threads": "8",
            "socket.send.buffer.bytes": "102400",
            "socket.receive.buffer.bytes": "102400",
            "socket.request.max.bytes": "104857600",
        },
    ),
    (
        "Log retention",
        {
            "log.retention.hours": "168",
            "log.segment.bytes": "1073741824",
            "log.retention.check.interval.ms": "300000",
        },
    ),
    (
        "Internal topic settings",
        {
            "offsets.topic.replication.factor": "1",
            "transaction.state.log.replication.factor": "1",
            "transaction.state.log.min.isr": "1",
        },
    ),
    ("Group coordinator settings", {"group.initial.rebalance.delay.ms": "0"}),
)

PERFORMANCE_PROFILE: tuple[Section, ...] = (
    (
        "Performance optimizations",
        {
            "num.network.threads": "8",
            "num.io.threads": "8",
            "socket.send.buffer.bytes": "1048576",
            "socket.receive.buffer.bytes": "1048576",
            "socket.request.max.bytes": "104857600",
        },
    ),
    (
        "Compression",
        {"compression.type": "lz4", "min.compressible.fetch.rate": "1000"},
    ),
    (
        "Replication performance",
        {
            "num.replica.fetchers": "4",
            "replica.fetch.max.bytes": "1048576",
            "replica.fetch.wait.max.ms": "500",
            "replica.fetch.min.bytes": "1",
            "replica.lag.time.max.ms": "10000",
        },
    ),
    (
        "Log retention and cleanup",
        {
            "log.retention.hours": "168",
            "log.retention.ms": "604800000",
            "log.segment.bytes": "104857600",
            "log.retention.check.interval.ms": "600000",
            "log.cleanup.interval.ms": "600000",
            "log.cleaner.enable": "true",
            "log.cleaner.threads": "2",
            "log.cleaner.io.buffer.size": "524288",
            "log.cleanup.policy": "delete",
            "log.cleaner.delete.retention.ms": "86400000",
        },
    ),
    (
        "Producer defaults",
        {
            "producer.linger.ms": "100",
            "producer.batch.size": "32768",
            "producer.buffer.memory": "67108864",
        },
    ),
    (
        "Log directory resilience",
        {
            "log.dir.failure.timeout.ms": "60000",
            "log.dirs.recovery.timeout.ms": "30000",
            "log.flush.interval.messages": "1000000",
            "log.flush.interval.ms": "60000",
            "unclean.leader.election.enable": "false",
            "min.insync.replicas": "1",
        },
    ),
    (
        "Topic deletion",
        {"delete.topic.enable": "true", "controlled.shutdown.enable": "false"},
    ),
    (
        "Internal topic settings",
        {
            "offsets.topic.replication.factor": "1",
            "transaction.state.log.replication.factor": "1",
            "transaction.state.log.min.isr": "1",
        },
    ),
    (
        "Group coordinator and consumer settings",
        {
            "group.initial.rebalance.delay.ms": "0",
            "group.min.session.timeout.ms": "6000",
            "group.max.session.timeout.ms": "300000",
            "fetch.min.bytes": "1",
            "fetch.max.wait.ms": "500",
            "max.poll.records": "500",
            "max.poll.interval.ms": "300000",
        },
    ),
    (
        "Network and request settings",
        {
            "request.timeout.ms": "30000",
            "metadata.max.age.ms": "300000",
            "connections.max.idle.ms": "540000",
        },
    ),
)

TUNING_PROFILES: Mapping[str, tuple[Section, ...]] = {
    "default": DEFAULT_PROFILE,
    "performance": PERFORMANCE_PROFILE,
}


@dataclass(frozen=True)
class BrokerTls:
    """Keystore/truststore settings appended as the SSL block."""

    keystore_location: str
    keystore_password: str
    truststore_location: str
    truststore_password: str

    def as_properties(self) -> dict[str, str]:
        return {
            "ssl.keystore.location": self.keystore_location,
            "ssl.keystore.password": self.keystore_password,
            "ssl.truststore.location": self.truststore_location,
            "ssl.truststore.password": self.truststore_password,
        }


@dataclass(frozen=True)
class BrokerProperties:
    """Everything that ends up in the broker's ``server.properties``."""

    zookeeper_connect: str
    listeners: str
    advertised_listeners: str
    listener_security_protocol_map: str
    inter_broker_listener_name: str
    broker_id: int = 1
    log_dirs: str = "/var/lib/kafka/data"
    zookeeper_connection_timeout_ms: int = 18000
    tuning: tuple[Section, ...] = DEFAULT_PROFILE
    tls: BrokerTls | None = None
    overrides: Mapping[str, str] = field(default_factory=dict)

    def sections(self) -> Iterator[Section]:
        """Yield (comment, properties) sections in file order."""
        yield "Basic Kafka configuration", {
            "broker.id": str(self.broker_id),
            "log.dirs": self.log_dirs,
        }
        yield "ZooKeeper connection", {
            "zookeeper.connect": self.zookeeper_connect,
            "zookeeper.connection.timeout.ms": str(
                self.zookeeper_connection_timeout_ms
            ),
        }
        yield "Network and listeners", {
            "listeners": self.listeners,
            "advertised.listeners": self.advertised_listeners,
            "listener.security.protocol.map": self.listener_security_protocol_map,
            "inter.broker.listener.name": self.inter_broker_listener_name,
        }
        yield from ((title, dict(props)) for title, props in self.tuning)
        if self.overrides:
            yield "Overrides", dict(self.overrides)
        if self.tls is not None:
            yield "SSL Configuration", self.tls.as_properties()

    def as_dict(self) -> dict[str, str]:
        """Flatten to a single mapping; later sections win on duplicate keys."""
        merged: dict[str, str] = {}
        for _, props in self.sections():
            merged.update(props)
        return merged

    def render(self) -> str:
        """Serialize to ``key=value`` text with a comment per section."""
        # last writer wins: only emit a key in the final section that sets it
        owner: dict[str, int] = {}
        sections = list(self.sections())
        for index, (_, props) in enumerate(sections):
            for key in props:
                owner[key] = index

        chunks: list[str] = []
        for index, (title, props) in enumerate(sections):
            lines = [f"{k}={v}" for k, v in props.items() if owner[k] == index]
            if lines:
                chunks.append("\n".join([f"# {title}", *lines]))
        return "\n\n".join(chunks) + "\n"


def parse_properties(text: str) -> dict[str, str]:
    """Parse flat ``key=value`` text, ignoring blanks and ``#`` comments."""
    parsed: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith(("#", "!")) or "=" not in line:
            continue
        key, value = line.split("=", 1)
        parsed[key.strip()] = value.strip()
    return parsed
