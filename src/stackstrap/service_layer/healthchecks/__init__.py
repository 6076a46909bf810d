"""Post-startup health and functional checks.

Each check drives a service's own CLI inside its container and returns a
list of `CheckResult` steps; nothing here raises on a failed step.
"""

from .kafka import check_kafka
from .mongodb import check_mongodb
from .sqlserver import check_sqlserver

__all__ = ["check_kafka", "check_mongodb", "check_sqlserver"]
