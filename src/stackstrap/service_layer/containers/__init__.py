"""Container entrypoints.

Each `prepare_*` function runs the pre-start states of one container
(permissions, dependency wait, config rendering) and returns the argv of
the real service process. `exec_service` then replaces the current process
with it.
"""

from .common import exec_service
from .elasticsearch import prepare_elasticsearch
from .kafka import prepare_kafka
from .kibana import prepare_kibana
from .zookeeper import prepare_zookeeper

__all__ = [
    "exec_service",
    "prepare_elasticsearch",
    "prepare_kafka",
    "prepare_kibana",
    "prepare_zookeeper",
]
