"""STACKSTRAP test suite.

Folder taxonomy
- unit/         : Fast checks of a single module; external tools go through
                  `FakeCommandRunner`, files through `tmp_path`.
- integration/  : Real cryptography and real files across several modules
                  (full certificate generation, chain verification).
- e2e/          : The `stackstrap` CLI driven through Click's `CliRunner`.
- fixtures/     : pytest plugins loaded from the root conftest (no tests here).

General guidance
- Never touch docker, keytool or the system trust store for real.
- Inject `sleep` and `now` wherever code waits or timestamps.
- Markers: unit, integration, e2e (added by each folder's conftest).
"""
