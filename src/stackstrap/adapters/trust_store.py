"""Platform trust-store adapters and privilege detection."""

from __future__ import annotations

import ctypes
import os
import platform
import re
import shutil
from pathlib import Path

from stackstrap.interfaces.trust_store import TrustStore

LINUX_ANCHOR_DIR = Path("/usr/local/share/ca-certificates")
MACOS_SYSTEM_KEYCHAIN = "/Library/Keychains/System.keychain"


def _anchor_name(common_name: str) -> str:
    """Turn a CN into a safe file stem (``Artemis Local CA`` -> ``artemis-local-ca``)."""
    stem = re.sub(r"[^A-Za-z0-9_.-]+", "-", common_name.strip()).strip("-").lower()
    return stem or "stackstrap-ca"


class LinuxTrustStore(TrustStore):
    """Debian/Ubuntu style store managed by ``update-ca-certificates``."""

    name = "linux"

    def __init__(self, anchor_dir: Path = LINUX_ANCHOR_DIR) -> None:
        self._anchor_dir = anchor_dir

    def anchor_path(self, common_name: str) -> Path:
        return self._anchor_dir / f"{_anchor_name(common_name)}.crt"

    def prepare(self, cert_path: Path, common_name: str) -> None:
        self._anchor_dir.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(cert_path, self.anchor_path(common_name))

    def import_commands(self, cert_path: Path, common_name: str) -> list[list[str]]:
        return [["update-ca-certificates"]]

    def manual_steps(self, cert_path: Path, common_name: str) -> list[str]:
        anchor = self.anchor_path(common_name)
        return [
            "Re-run this command as root (e.g. with sudo), or:",
            f"Copy {cert_path} to {anchor}",
            "Run update-ca-certificates to rebuild the system bundle",
            "Restart browsers so they pick up the new root",
        ]

    def manual_commands(self, cert_path: Path, common_name: str) -> list[str]:
        return [
            f"sudo cp {cert_path} {self.anchor_path(common_name)}",
            "sudo update-ca-certificates",
        ]


class MacOSTrustStore(TrustStore):
    """System keychain managed by the ``security`` tool."""

    name = "macos"

    def import_commands(self, cert_path: Path, common_name: str) -> list[list[str]]:
        return [
            [
                "security",
                "add-trusted-cert",
                "-d",
                "-r",
                "trustRoot",
                "-k",
                MACOS_SYSTEM_KEYCHAIN,
                str(cert_path),
            ]
        ]

    def manual_steps(self, cert_path: Path, common_name: str) -> list[str]:
        return [
            "Open Keychain Access and select the System keychain",
            f"Drag {cert_path} into the keychain",
            f"Double-click '{common_name}', expand Trust, set 'When using this "
            "certificate' to Always Trust",
        ]


class WindowsTrustStore(TrustStore):
    """LocalMachine\\Root store managed by ``certutil``."""

    name = "windows"

    def import_commands(self, cert_path: Path, common_name: str) -> list[list[str]]:
        return [["certutil", "-addstore", "-f", "Root", str(cert_path)]]

    def manual_steps(self, cert_path: Path, common_name: str) -> list[str]:
        return [
            "Open an elevated PowerShell (Run as Administrator) and run the command below, or:",
            "Press Win+R, run certlm.msc",
            "Right-click 'Trusted Root Certification Authorities' > All Tasks > Import",
            f"Select {cert_path} and finish the wizard",
            f"Confirm '{common_name}' appears under Certificates",
        ]


def detect_trust_store(system: str | None = None) -> TrustStore | None:
    """Return the trust store for the running platform, or None if unsupported."""
    system = system or platform.system()
    stores: dict[str, type[TrustStore]] = {
        "Linux": LinuxTrustStore,
        "Darwin": MacOSTrustStore,
        "Windows": WindowsTrustStore,
    }
    if (store_cls := stores.get(system)) is None:
        return None
    return store_cls()


def is_privileged() -> bool:
    """True when running as root (POSIX) or as an administrator (Windows)."""
    if hasattr(os, "geteuid"):
        return os.geteuid() == 0
    try:
        return bool(ctypes.windll.shell32.IsUserAnAdmin())  # type: ignore[attr-defined]
    except (AttributeError, OSError):
        return False
