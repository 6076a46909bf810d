"""Kafka broker entrypoint (port handoff).

States: fix permissions, wait for ZooKeeper's port, render
``server.properties`` (with the SSL block only when the keystore file
exists), hand off to ``kafka-server-start.sh``.
"""

from __future__ import annotations

import logging
import shutil
import time
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path

from stackstrap.config import KafkaSettings
from stackstrap.domain.broker import (
    TUNING_PROFILES,
    BrokerProperties,
    BrokerTls,
    parse_properties,
)
from stackstrap.domain.errors import InvalidSettingError
from stackstrap.service_layer.waiters import Sleep, await_port, port_open

from .common import atomic_write_text, fix_permissions

logger = logging.getLogger(__name__)

STALE_DIR_PATTERNS = ("artemis-test-*", "*-delete")
STALE_FILES = (".kafka_cleanshutdown",)


def data_dirs(settings: KafkaSettings) -> list[Path]:
    return [Path(d.strip()) for d in settings.log_dirs.split(",") if d.strip()]


def clean_stale_state(data_dir: Path) -> list[Path]:
    """Remove leftover test topic dirs, pending-delete dirs and shutdown markers."""
    removed: list[Path] = []
    if not data_dir.is_dir():
        return removed
    for pattern in STALE_DIR_PATTERNS:
        for path in data_dir.glob(pattern):
            if path.is_dir():
                shutil.rmtree(path, ignore_errors=True)
                removed.append(path)
    for name in STALE_FILES:
        marker = data_dir / name
        if marker.is_file():
            marker.unlink()
            removed.append(marker)
    if removed:
        logger.info("Removed %d stale entries from %s", len(removed), data_dir)
    return removed


def build_broker_properties(settings: KafkaSettings) -> BrokerProperties:
    """Build the typed broker config; TLS iff the keystore file exists now."""
    tls = None
    if settings.tls is not None:
        if Path(settings.tls.keystore_location).is_file():
            tls = BrokerTls(
                keystore_location=settings.tls.keystore_location,
                keystore_password=settings.tls.keystore_password,
                truststore_location=settings.tls.truststore_location,
                truststore_password=settings.tls.truststore_password,
            )
        else:
            logger.warning(
                "Keystore %s does not exist; starting without TLS",
                settings.tls.keystore_location,
            )
    base = BrokerProperties(
        zookeeper_connect=settings.zookeeper_connect,
        listeners=settings.listeners,
        advertised_listeners=settings.advertised_listeners,
        listener_security_protocol_map=settings.listener_security_protocol_map,
        inter_broker_listener_name=settings.inter_broker_listener_name,
        broker_id=settings.broker_id,
        log_dirs=settings.log_dirs,
        tuning=TUNING_PROFILES[settings.tuning_profile],
        tls=tls,
    )
    if not (overrides := load_overrides(settings)):
        return base
    replaced = sorted(overrides.keys() & base.as_dict().keys())
    logger.info(
        "Applying %d extra broker properties from %s (replacing: %s)",
        len(overrides),
        settings.extra_properties_file,
        ", ".join(replaced) or "none",
    )
    return replace(base, overrides=overrides)


def load_overrides(settings: KafkaSettings) -> dict[str, str]:
    """Read `settings.extra_properties_file`, if one is configured."""
    path = settings.extra_properties_file
    if path is None:
        return {}
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise InvalidSettingError(
            "KAFKA_EXTRA_PROPERTIES_FILE", str(path), e.strerror or "unreadable"
        ) from e
    return parse_properties(text)


def prepare_kafka(
    settings: KafkaSettings,
    *,
    privileged: bool,
    sleep: Sleep = time.sleep,
    probe: Callable[[str, int], bool] = port_open,
) -> list[str]:
    """Run the broker's pre-start states and return its start command."""
    dirs = data_dirs(settings)
    if privileged:
        fix_permissions([*dirs, Path(settings.logs_dir)], settings.run_as)
    for directory in dirs:
        clean_stale_state(directory)

    host, port = settings.zookeeper_address()
    await_port(host, port, settings.zookeeper_wait, sleep=sleep, probe=probe)

    properties = build_broker_properties(settings)
    atomic_write_text(settings.config_path, properties.render())
    logger.info(
        "Wrote %s (profile=%s, tls=%s)",
        settings.config_path,
        settings.tuning_profile,
        "on" if properties.tls else "off",
    )
    return [
        str(settings.kafka_home / "bin" / "kafka-server-start.sh"),
        str(settings.config_path),
    ]
