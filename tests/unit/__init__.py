"""Unit tests.

One module per test file. External tools (docker, keytool, mongosh,
sqlcmd, elasticsearch-service-tokens) are scripted with
`FakeCommandRunner`; files live under `tmp_path`; waits take `no_sleep`.
"""
