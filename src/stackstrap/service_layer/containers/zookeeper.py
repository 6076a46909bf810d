"""ZooKeeper entrypoint: fix mounted volume permissions, then start."""

from __future__ import annotations

from stackstrap.config import ZookeeperSettings

from .common import fix_permissions


def prepare_zookeeper(settings: ZookeeperSettings, *, privileged: bool) -> list[str]:
    if privileged:
        fix_permissions(settings.data_dirs, settings.run_as)
    return [
        str(settings.kafka_home / "bin" / "zookeeper-server-start.sh"),
        str(settings.config_path),
    ]
