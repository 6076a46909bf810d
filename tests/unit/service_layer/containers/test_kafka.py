"""Unit tests for the Kafka broker entrypoint."""

import logging
from dataclasses import replace
from pathlib import Path

import pytest

from stackstrap.config import KafkaSettings, KafkaTlsSettings, WaitPolicy
from stackstrap.domain.broker import parse_properties
from stackstrap.domain.errors import DependencyTimeoutError, InvalidSettingError
from stackstrap.service_layer.containers.kafka import (
    build_broker_properties,
    clean_stale_state,
    data_dirs,
    prepare_kafka,
)

# pylint: disable=redefined-outer-name


@pytest.fixture
def settings(tmp_path: Path) -> KafkaSettings:
    return KafkaSettings(
        zookeeper_connect="zookeeper:2181",
        listeners="PLAINTEXT://0.0.0.0:9092",
        advertised_listeners="PLAINTEXT://kafka:9092",
        listener_security_protocol_map="PLAINTEXT:PLAINTEXT",
        inter_broker_listener_name="PLAINTEXT",
        log_dirs=str(tmp_path / "data"),
        logs_dir=str(tmp_path / "logs"),
        config_path=tmp_path / "config" / "server.properties",
        kafka_home=tmp_path / "kafka",
        zookeeper_wait=WaitPolicy(attempts=3, interval=2.0),
    )


def _tls(tmp_path: Path) -> KafkaTlsSettings:
    return KafkaTlsSettings(
        keystore_location=str(tmp_path / "kafka.keystore.jks"),
        keystore_password="ks-pass",
        truststore_location=str(tmp_path / "kafka.truststore.jks"),
        truststore_password="ts-pass",
    )


def test_data_dirs_splits_comma_list():
    settings = KafkaSettings("zk:2181", "l", "a", "m", "i", log_dirs="/a, /b,,")
    assert data_dirs(settings) == [Path("/a"), Path("/b")]


def test_clean_stale_state(tmp_path: Path):
    (tmp_path / "artemis-test-1700000000-0").mkdir()
    (tmp_path / "orders-0.abc-delete").mkdir()
    (tmp_path / "orders-0").mkdir()
    (tmp_path / ".kafka_cleanshutdown").write_text("")
    (tmp_path / "meta.properties").write_text("broker.id=1\n")

    removed = clean_stale_state(tmp_path)

    assert len(removed) == 3
    assert sorted(p.name for p in tmp_path.iterdir()) == ["meta.properties", "orders-0"]


def test_clean_stale_state_missing_dir(tmp_path: Path):
    assert not clean_stale_state(tmp_path / "missing")


def test_no_tls_without_settings(settings):
    assert build_broker_properties(settings).tls is None


def test_tls_only_when_keystore_exists(settings, tmp_path, caplog):
    settings = replace(settings, tls=_tls(tmp_path))

    with caplog.at_level(logging.WARNING):
        assert build_broker_properties(settings).tls is None
    assert "starting without TLS" in caplog.text

    Path(settings.tls.keystore_location).write_bytes(b"jks")
    tls = build_broker_properties(settings).tls
    assert tls is not None
    assert tls.keystore_password == "ks-pass"


def test_extra_properties_file_overrides_profile(settings, tmp_path, caplog):
    extra = tmp_path / "extra.properties"
    extra.write_text(
        "# local tweaks\nlog.retention.hours=24\nauto.create.topics.enable=false\n"
    )
    settings = replace(settings, extra_properties_file=extra)

    with caplog.at_level(logging.INFO):
        properties = build_broker_properties(settings)

    assert properties.overrides == {
        "log.retention.hours": "24",
        "auto.create.topics.enable": "false",
    }
    assert "replacing: log.retention.hours" in caplog.text
    rendered = parse_properties(properties.render())
    assert rendered["log.retention.hours"] == "24"
    assert rendered["auto.create.topics.enable"] == "false"


def test_empty_extra_properties_file_changes_nothing(settings, tmp_path):
    extra = tmp_path / "extra.properties"
    extra.write_text("# nothing yet\n")

    properties = build_broker_properties(replace(settings, extra_properties_file=extra))

    assert properties == build_broker_properties(settings)


def test_missing_extra_properties_file(settings, tmp_path):
    settings = replace(settings, extra_properties_file=tmp_path / "missing.properties")

    with pytest.raises(InvalidSettingError) as exc_info:
        build_broker_properties(settings)
    assert exc_info.value.name == "KAFKA_EXTRA_PROPERTIES_FILE"


def test_prepare_kafka_writes_config_after_port_opens(settings, no_sleep):
    probes = []

    def probe(host, port):
        probes.append((host, port))
        # config must not exist before the port is up
        assert not settings.config_path.exists()
        return len(probes) == 2

    argv = prepare_kafka(settings, privileged=False, sleep=no_sleep.append, probe=probe)

    assert probes == [("zookeeper", 2181)] * 2
    assert argv == [
        str(settings.kafka_home / "bin" / "kafka-server-start.sh"),
        str(settings.config_path),
    ]
    rendered = settings.config_path.read_text()
    assert "zookeeper.connect=zookeeper:2181\n" in rendered
    assert "ssl.keystore.location" not in rendered


def test_prepare_kafka_times_out_without_writing(settings, no_sleep):
    with pytest.raises(DependencyTimeoutError):
        prepare_kafka(
            settings,
            privileged=False,
            sleep=no_sleep.append,
            probe=lambda host, port: False,
        )
    assert len(no_sleep) == 2
    assert not settings.config_path.exists()
