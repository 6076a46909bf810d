"""Integration tests.

Real RSA keys and certificates written to `tmp_path` and read back through
several modules (generation, backups, JKS hook, chain verification) and
adapter wiring. Key generation makes these slower than the unit tests.
"""
