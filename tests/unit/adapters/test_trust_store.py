"""Unit tests for the platform trust-store adapters."""

from pathlib import Path

import pytest

from stackstrap.adapters.trust_store import (
    LinuxTrustStore,
    MacOSTrustStore,
    WindowsTrustStore,
    detect_trust_store,
)

CERT = Path("/work/certs/ca/ca.crt")


@pytest.mark.parametrize(
    ("system", "store_cls"),
    [("Linux", LinuxTrustStore), ("Darwin", MacOSTrustStore), ("Windows", WindowsTrustStore)],
)
def test_detect_trust_store(system, store_cls):
    assert isinstance(detect_trust_store(system), store_cls)


def test_detect_trust_store_unsupported():
    assert detect_trust_store("SunOS") is None


class TestLinuxTrustStore:
    """update-ca-certificates based store."""

    @staticmethod
    def test_prepare_copies_into_anchor_dir(tmp_path: Path) -> None:
        cert = tmp_path / "ca.crt"
        cert.write_text("-----BEGIN CERTIFICATE-----\n")
        store = LinuxTrustStore(anchor_dir=tmp_path / "anchors")
        store.prepare(cert, "Artemis Local CA")
        anchor = tmp_path / "anchors" / "artemis-local-ca.crt"
        assert anchor.read_text() == "-----BEGIN CERTIFICATE-----\n"

    @staticmethod
    def test_commands(tmp_path: Path) -> None:
        store = LinuxTrustStore(anchor_dir=tmp_path)
        assert store.import_commands(CERT, "ArtemisLocalCA") == [["update-ca-certificates"]]
        assert store.manual_commands(CERT, "ArtemisLocalCA") == [
            f"sudo cp {CERT} {tmp_path / 'artemislocalca.crt'}",
            "sudo update-ca-certificates",
        ]

    @staticmethod
    def test_blank_common_name_gets_fallback_anchor(tmp_path: Path) -> None:
        store = LinuxTrustStore(anchor_dir=tmp_path)
        assert store.anchor_path("  ***  ").name == "stackstrap-ca.crt"


def test_macos_imports_into_system_keychain():
    [command] = MacOSTrustStore().import_commands(CERT, "ArtemisLocalCA")
    assert command[:5] == ["security", "add-trusted-cert", "-d", "-r", "trustRoot"]
    assert command[-1] == str(CERT)


def test_windows_manual_command_is_shell_quoted():
    cert = Path("C:/Users/dev user/certs/ca.crt")
    [command] = WindowsTrustStore().manual_commands(cert, "ArtemisLocalCA")
    assert command == f"certutil -addstore -f Root '{cert}'"


@pytest.mark.parametrize("store", [LinuxTrustStore(), MacOSTrustStore(), WindowsTrustStore()])
def test_manual_steps_mention_certificate(store):
    steps = store.manual_steps(CERT, "ArtemisLocalCA")
    assert steps
    assert any(str(CERT) in step for step in steps)
