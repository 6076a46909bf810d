"""STACKSTRAP

Bootstrap tooling for a local multi-service stack (Elasticsearch, Kibana,
Kafka, ZooKeeper, MongoDB, SQL Server): TLS material, container
entrypoints, and post-startup health checks.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
