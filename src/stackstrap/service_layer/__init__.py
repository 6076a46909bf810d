"""Service layer for STACKSTRAP.

Orchestrates the setup chain (certificates, trust), container entrypoints
and health checks on top of the domain types and injected adapters.
"""
